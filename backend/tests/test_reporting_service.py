from datetime import datetime, timedelta

import pytest

from dailymart.errors import ValidationError
from dailymart.extensions import db
from dailymart.services import reporting_service, sales_service
from dailymart.services.sales_service import Cart, CartLine, SaleMeta
from dailymart.time_utils import localnow


def _sell(barcode, quantity, *, sold_at=None, discount=0):
    return sales_service.create_sale(
        Cart([CartLine(quantity=quantity, barcode=barcode)]),
        SaleMeta(discount_amount_cents=discount),
        sold_at=sold_at,
    )


def test_daily_report_two_bills(db_session, make_product):
    make_product(barcode="P1", sell_price_cents=5000, quantity=20)
    _sell("P1", 2, sold_at=datetime(2026, 10, 18, 9, 0))
    _sell("P1", 3, sold_at=datetime(2026, 10, 18, 17, 45))
    # Neighbouring days stay out
    _sell("P1", 1, sold_at=datetime(2026, 10, 17, 23, 59))
    _sell("P1", 1, sold_at=datetime(2026, 10, 19, 0, 0))

    report = reporting_service.daily_sales_report("2026-10-18")
    summary = report["summary"]

    assert report["date"] == "2026-10-18"
    assert summary["total_bills"] == 2
    assert summary["gross_sales_cents"] == 25000
    assert summary["net_sales_cents"] == 25000
    assert summary["avg_bill_value_cents"] == 12500
    assert [s["items_count"] for s in report["sales"]] == [3, 2]


def test_daily_report_discounts_and_empty_day(db_session, make_product):
    make_product(barcode="P2", sell_price_cents=1000, quantity=10)
    _sell("P2", 3, sold_at=datetime(2026, 10, 18, 11, 0), discount=500)

    summary = reporting_service.daily_sales_report("2026-10-18")["summary"]
    assert summary["total_discount_cents"] == 500
    assert summary["net_sales_cents"] == 2500

    empty = reporting_service.daily_sales_report("2026-10-01")
    assert empty["summary"]["total_bills"] == 0
    assert empty["summary"]["avg_bill_value_cents"] == 0
    assert empty["sales"] == []


def test_daily_report_rejects_bad_date(db_session):
    with pytest.raises(ValidationError):
        reporting_service.daily_sales_report("18/10/2026")


def test_monthly_report(db_session, make_product):
    make_product(barcode="M1", sell_price_cents=1000, quantity=50)
    _sell("M1", 1, sold_at=datetime(2026, 9, 30, 23, 0))
    _sell("M1", 2, sold_at=datetime(2026, 10, 1, 0, 0))
    _sell("M1", 4, sold_at=datetime(2026, 10, 31, 22, 0))
    _sell("M1", 8, sold_at=datetime(2026, 11, 1, 0, 0))

    report = reporting_service.monthly_sales_report("2026-10")
    assert report["month"] == "2026-10"
    assert report["summary"]["total_bills"] == 2
    assert report["summary"]["net_sales_cents"] == 6000

    with pytest.raises(ValidationError):
        reporting_service.monthly_sales_report("2026-13")


@pytest.mark.parametrize("month", ["0000-05", "abcd-01", "2026"])
def test_monthly_report_rejects_out_of_range_month(db_session, month):
    with pytest.raises(ValidationError):
        reporting_service.monthly_sales_report(month)


def test_profit_report_uses_current_buy_price(db_session, make_product):
    p = make_product(barcode="C1", buy_price_cents=3000, sell_price_cents=5000, quantity=10)
    _sell("C1", 2, sold_at=datetime(2026, 10, 18, 10, 0))

    report = reporting_service.profit_report("2026-10-18", "2026-10-18")
    assert report["revenue_cents"] == 10000
    assert report["cost_cents"] == 6000
    assert report["gross_profit_cents"] == 4000
    assert report["margin_pct"] == 40.0
    assert report["units_sold"] == 2

    # Repricing the buy price rewrites historical profit
    p.buy_price_cents = 4000
    db.session.commit()
    assert reporting_service.profit_report("2026-10-18", "2026-10-18")["gross_profit_cents"] == 2000


def test_profit_report_zero_revenue_has_no_margin(db_session):
    report = reporting_service.profit_report("2026-10-01", "2026-10-31")
    assert report["revenue_cents"] == 0
    assert report["margin_pct"] is None


def test_profit_report_rejects_inverted_range(db_session):
    with pytest.raises(ValidationError):
        reporting_service.profit_report("2026-10-18", "2026-10-01")


def test_top_selling_ranking_and_window(db_session, make_product):
    now = localnow()
    a = make_product(barcode="T1", name="Tea", sell_price_cents=1000, quantity=50)
    b = make_product(barcode="T2", name="Coffee", sell_price_cents=2000, quantity=50)
    c = make_product(barcode="T3", name="Juice", sell_price_cents=500, quantity=50)

    _sell("T1", 3, sold_at=now)
    _sell("T2", 3, sold_at=now)  # same units as Tea, more revenue
    _sell("T3", 5, sold_at=now)
    _sell("T1", 10, sold_at=now - timedelta(days=40))  # outside window

    report = reporting_service.top_selling_products(days=30, limit=10)
    ranked = [(r["product_id"], r["units_sold"]) for r in report["rows"]]

    assert ranked == [(c.id, 5), (b.id, 3), (a.id, 3)]
    assert report["rows"][1]["revenue_cents"] == 6000
    assert report["rows"][1]["times_sold"] == 1

    assert len(reporting_service.top_selling_products(days=30, limit=1)["rows"]) == 1


@pytest.mark.parametrize("days", [0, -1, 100_000_000_000])
def test_top_selling_rejects_bad_window(db_session, days):
    with pytest.raises(ValidationError):
        reporting_service.top_selling_products(days=days)


def test_top_selling_window_reaches_back_days_before_today(db_session, make_product):
    make_product(barcode="E1", sell_price_cents=1000, quantity=10)
    _sell("E1", 2, sold_at=localnow() - timedelta(days=30))

    assert [r["units_sold"] for r in reporting_service.top_selling_products(days=30)["rows"]] == [2]
    assert reporting_service.top_selling_products(days=29)["rows"] == []


def test_stock_value_and_dashboard(db_session, make_product):
    make_product(barcode="V1", buy_price_cents=1000, sell_price_cents=1500, quantity=10)
    make_product(barcode="V2", buy_price_cents=2000, sell_price_cents=2000, quantity=2)

    report = reporting_service.stock_value_report()
    assert report == {
        "total_products": 2,
        "total_units": 12,
        "total_investment_cents": 14000,
        "potential_revenue_cents": 19000,
        "potential_profit_cents": 5000,
    }

    _sell("V1", 1)
    stats = reporting_service.dashboard_stats()
    assert stats["total_units"] == 11
    assert stats["low_stock_count"] == 1
    assert stats["today_bills"] == 1
    assert stats["today_net_sales_cents"] == 1500
    # margin held in stock: 9 * (1500 - 1000) + 2 * (2000 - 2000)
    assert stats["inventory_value_cents"] == 4500
    assert stats["inventory_cost_cents"] == 13000
