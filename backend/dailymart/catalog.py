# Overview: Closed value sets for product categories and payment methods.


class ProductCategory:
    """Product categories accepted by the catalogue (closed set)."""
    BEVERAGES = "Beverages"
    BISCUITS = "Biscuits"
    DAIRY = "Dairy"
    SNACKS = "Snacks"
    ICE_CREAMS = "Ice Creams"
    FROZEN_FOODS = "Frozen Foods"
    BAKERY = "Bakery"
    FRUITS_VEGETABLES = "Fruits & Vegetables"
    MEAT_SEAFOOD = "Meat & Seafood"
    INSTANT_FOOD = "Instant Food"
    COOKING_OIL = "Cooking Oil"
    SPICES_MASALA = "Spices & Masala"
    RICE_GRAINS = "Rice & Grains"
    PULSES_DALS = "Pulses & Dals"
    SAUCES_CONDIMENTS = "Sauces & Condiments"
    HEALTH_DRINKS = "Health Drinks"
    CONFECTIONERY = "Confectionery"
    PERSONAL_CARE = "Personal Care"
    HEALTH_WELLNESS = "Health & Wellness"
    BABY_CARE = "Baby Care"
    CLEANING_SUPPLIES = "Cleaning Supplies"
    DETERGENTS = "Detergents"
    HOUSEHOLD_ITEMS = "Household Items"
    STATIONERY = "Stationery"
    PET_CARE = "Pet Care"
    OTHER = "Other"


PRODUCT_CATEGORIES: tuple[str, ...] = tuple(
    value for key, value in vars(ProductCategory).items() if key.isupper()
)


class PaymentMethod:
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    OTHER = "other"


PAYMENT_METHODS: tuple[str, ...] = (
    PaymentMethod.CASH,
    PaymentMethod.CARD,
    PaymentMethod.UPI,
    PaymentMethod.OTHER,
)


def sql_in_list(values) -> str:
    """Render values as a quoted SQL IN-list for CHECK constraints."""
    return ", ".join("'" + v.replace("'", "''") + "'" for v in values)
