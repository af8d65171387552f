import pytest

from dailymart.catalog import PRODUCT_CATEGORIES, ProductCategory
from dailymart.errors import ProductNotFoundError, ValidationError
from dailymart.extensions import db
from dailymart.models import Product
from dailymart.services import products_service


def _fields(**overrides):
    fields = {
        "barcode": "8901234567890",
        "name": "Good Day Cashew",
        "category": ProductCategory.BISCUITS,
        "buy_price_cents": 2500,
        "sell_price_cents": 3000,
    }
    fields.update(overrides)
    return fields


def test_category_set_is_closed():
    assert len(PRODUCT_CATEGORIES) == 26
    assert "Fruits & Vegetables" in PRODUCT_CATEGORIES
    assert PRODUCT_CATEGORIES[-1] == "Other"


def test_add_product_defaults(db_session):
    p = products_service.add_product(_fields())

    assert p.id is not None
    assert p.quantity == 0
    assert p.low_stock_threshold == 4
    assert p.is_active is True
    assert p.to_dict()["is_low_stock"] is True


def test_add_product_accepts_digit_strings(db_session):
    p = products_service.add_product(_fields(buy_price_cents="1000", sell_price_cents="1500", quantity="7"))
    assert (p.buy_price_cents, p.sell_price_cents, p.quantity) == (1000, 1500, 7)


@pytest.mark.parametrize("overrides", [
    {"category": "Electronics"},
    {"sell_price_cents": 2000},
    {"buy_price_cents": -1},
    {"buy_price_cents": 12.5},
    {"quantity": -3},
    {"name": "   "},
    {"barcode": "x" * 65},
])
def test_add_product_rejects_bad_fields(db_session, overrides):
    with pytest.raises(ValidationError):
        products_service.add_product(_fields(**overrides))
    assert db.session.query(Product).count() == 0


def test_add_product_requires_fields(db_session):
    fields = _fields()
    del fields["category"]
    with pytest.raises(ValidationError, match="category"):
        products_service.add_product(fields)


def test_unknown_category_lists_allowed_values(db_session):
    with pytest.raises(ValidationError) as exc_info:
        products_service.add_product(_fields(category="Toys"))
    assert exc_info.value.details["allowed"] == list(PRODUCT_CATEGORIES)


def test_duplicate_barcode_rejected(db_session):
    products_service.add_product(_fields())
    with pytest.raises(ValidationError, match="Barcode already exists"):
        products_service.add_product(_fields(name="Another"))


def test_update_product_checks_price_against_current(db_session):
    p = products_service.add_product(_fields(buy_price_cents=2500, sell_price_cents=3000))

    with pytest.raises(ValidationError):
        products_service.update_product(p.id, {"sell_price_cents": 2400})

    updated = products_service.update_product(p.id, {"sell_price_cents": 3500, "name": "Good Day Butter"})
    assert updated.sell_price_cents == 3500
    assert updated.name == "Good Day Butter"


def test_update_cannot_set_quantity(db_session):
    p = products_service.add_product(_fields(quantity=5))
    with pytest.raises(ValidationError, match="Field not allowed: quantity"):
        products_service.update_product(p.id, {"quantity": 50})
    assert db.session.get(Product, p.id).quantity == 5


def test_update_barcode_collision(db_session):
    products_service.add_product(_fields(barcode="111"))
    p = products_service.add_product(_fields(barcode="222"))
    with pytest.raises(ValidationError):
        products_service.update_product(p.id, {"barcode": "111"})


def test_update_unknown_product(db_session):
    with pytest.raises(ProductNotFoundError):
        products_service.update_product(404, {"name": "Ghost"})


def test_lookup_by_barcode_hides_discontinued(db_session):
    p = products_service.add_product(_fields(barcode="555"))
    assert products_service.get_product_by_barcode("555").id == p.id
    assert products_service.get_product_by_barcode("556") is None

    products_service.update_product(p.id, {"is_active": False})
    assert products_service.get_product_by_barcode("555") is None
    assert products_service.get_product(p.id).is_active is False


def test_list_and_search(db_session):
    products_service.add_product(_fields(barcode="1", name="Amul Butter", category=ProductCategory.DAIRY))
    products_service.add_product(_fields(barcode="2", name="Britannia Bread", category=ProductCategory.BAKERY))
    hidden = products_service.add_product(_fields(barcode="3", name="Amul Cheese", category=ProductCategory.DAIRY))
    products_service.update_product(hidden.id, {"is_active": False})

    assert [p.name for p in products_service.list_products()] == ["Amul Butter", "Britannia Bread"]
    assert len(products_service.list_products(include_inactive=True)) == 3

    assert [p.name for p in products_service.search_products("amul")] == ["Amul Butter"]
    assert [p.name for p in products_service.search_products("dairy", include_inactive=True)] == [
        "Amul Butter", "Amul Cheese",
    ]
    assert [p.name for p in products_service.search_products("2")] == ["Britannia Bread"]
