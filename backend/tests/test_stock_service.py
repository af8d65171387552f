import pytest

from dailymart.errors import InsufficientStockError, ProductNotFoundError, ValidationError
from dailymart.extensions import db
from dailymart.models import Product, StockInEvent
from dailymart.services import stock_service


def test_adjust_positive_and_negative(db_session, make_product):
    p = make_product(quantity=5)

    assert stock_service.adjust(p.id, 3) == 8
    assert stock_service.adjust(p.id, -8) == 0
    db.session.commit()

    assert db.session.get(Product, p.id).quantity == 0


def test_adjust_refuses_to_go_negative(db_session, make_product):
    p = make_product(quantity=2, name="Chips")

    with pytest.raises(InsufficientStockError) as exc_info:
        stock_service.adjust(p.id, -3)
    db.session.rollback()

    err = exc_info.value
    assert err.available == 2
    assert err.requested == 3
    assert err.details["product_name"] == "Chips"
    assert db.session.get(Product, p.id).quantity == 2


def test_adjust_unknown_product(db_session):
    with pytest.raises(ProductNotFoundError):
        stock_service.adjust(99999, 1)
    db.session.rollback()


def test_stock_in_records_event_and_raises_quantity(db_session, make_product):
    p = make_product(quantity=4)

    event = stock_service.add_stock_in(product_id=p.id, quantity=6, purchase_price_cents=2900, notes="Weekly delivery")

    assert event.id is not None
    assert event.quantity_added == 6
    assert db.session.get(Product, p.id).quantity == 10

    history = stock_service.get_stock_history(product_id=p.id)
    assert [e.id for e in history] == [event.id]
    assert history[0].to_dict()["barcode"] == p.barcode


@pytest.mark.parametrize("quantity", [0, -5])
def test_stock_in_rejects_non_positive_quantity(db_session, make_product, quantity):
    p = make_product(quantity=4)

    with pytest.raises(ValidationError):
        stock_service.add_stock_in(product_id=p.id, quantity=quantity)

    assert db.session.get(Product, p.id).quantity == 4
    assert db.session.query(StockInEvent).count() == 0


def test_stock_in_unknown_product_writes_nothing(db_session):
    with pytest.raises(ProductNotFoundError):
        stock_service.add_stock_in(product_id=4242, quantity=3)
    assert db.session.query(StockInEvent).count() == 0


def test_stock_history_newest_first_and_limited(db_session, make_product):
    a = make_product()
    b = make_product()
    e1 = stock_service.add_stock_in(product_id=a.id, quantity=1)
    e2 = stock_service.add_stock_in(product_id=b.id, quantity=2)
    e3 = stock_service.add_stock_in(product_id=a.id, quantity=3)

    ids = [e.id for e in stock_service.get_stock_history()]
    assert ids == [e3.id, e2.id, e1.id]
    assert [e.id for e in stock_service.get_stock_history(limit=2)] == [e3.id, e2.id]


def test_low_stock_uses_thresholds_and_ordering(db_session, make_product):
    make_product(name="Plenty", quantity=50)
    low_b = make_product(name="Bread", quantity=1)
    low_a = make_product(name="Atta", quantity=1)
    zero = make_product(name="Milk", quantity=0)
    custom = make_product(name="Eggs", quantity=8, low_stock_threshold=10)
    gone = make_product(name="Old", quantity=0)
    gone.is_active = False
    db.session.commit()

    ids = [p.id for p in stock_service.get_low_stock()]
    assert ids == [zero.id, low_a.id, low_b.id, custom.id]

    # An explicit threshold replaces the per-product one
    assert [p.id for p in stock_service.get_low_stock(1)] == [zero.id]
