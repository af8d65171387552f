from datetime import date, datetime

import pytest

from dailymart.models import Sale
from dailymart.services import billing_service
from dailymart.services.billing_service import (
    BillNumberError,
    format_bill_number,
    next_bill_number,
    parse_bill_number,
)


def _insert_sale(db_session, bill_number, sold_at=datetime(2026, 10, 18, 9, 0)):
    db_session.add(Sale(
        bill_number=bill_number,
        total_amount_cents=100,
        discount_amount_cents=0,
        final_amount_cents=100,
        payment_method="cash",
        sale_date=sold_at,
    ))
    db_session.commit()


def test_format_daily_and_global():
    assert format_bill_number(1, on=date(2026, 10, 18)) == "BILL-20261018-0001"
    assert format_bill_number(42, scheme="global") == "BILL-0042"
    assert format_bill_number(12345, scheme="global") == "BILL-12345"


def test_format_daily_requires_date():
    with pytest.raises(BillNumberError):
        format_bill_number(1, scheme="daily")


def test_parse_bill_number():
    assert parse_bill_number("BILL-20261018-0007") == (date(2026, 10, 18), 7)
    assert parse_bill_number("BILL-0012") == (None, 12)
    assert parse_bill_number("BILL-20261399-0001") is None
    assert parse_bill_number("INV-0001") is None
    assert parse_bill_number("") is None


def test_first_bill_of_day_is_0001(db_session):
    assert next_bill_number(on=date(2026, 10, 18)) == "BILL-20261018-0001"


def test_next_is_max_plus_one_within_day(db_session):
    _insert_sale(db_session, "BILL-20261018-0001")
    _insert_sale(db_session, "BILL-20261018-0007")
    # Other days do not affect today's sequence
    _insert_sale(db_session, "BILL-20261017-0050", sold_at=datetime(2026, 10, 17, 9, 0))

    assert next_bill_number(on=date(2026, 10, 18)) == "BILL-20261018-0008"
    assert next_bill_number(on=date(2026, 10, 19)) == "BILL-20261019-0001"


def test_sequence_past_9999_orders_numerically(db_session):
    _insert_sale(db_session, "BILL-20261018-9999")
    assert next_bill_number(on=date(2026, 10, 18)) == "BILL-20261018-10000"

    _insert_sale(db_session, "BILL-20261018-10000")
    assert next_bill_number(on=date(2026, 10, 18)) == "BILL-20261018-10001"


def test_global_scheme_ignores_daily_numbers(db_session):
    _insert_sale(db_session, "BILL-20261018-0003")
    assert next_bill_number(scheme="global") == "BILL-0001"

    _insert_sale(db_session, "BILL-0009")
    assert next_bill_number(scheme="global") == "BILL-0010"


def test_scheme_defaults_to_config(app, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "BILL_NUMBER_SCHEME", "global")
    assert next_bill_number() == "BILL-0001"


def test_unknown_scheme_rejected(db_session):
    with pytest.raises(BillNumberError):
        next_bill_number(scheme="weekly")


def test_preview_reserves_nothing(db_session):
    first = next_bill_number(on=date(2026, 10, 18))
    second = next_bill_number(on=date(2026, 10, 18))
    assert first == second
    assert billing_service.SCHEME_DAILY in billing_service.SCHEMES
