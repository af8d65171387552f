from .inventory import Product, StockInEvent
from .sales import Sale, SaleItem

__all__ = [
    'Product', 'StockInEvent',
    'Sale', 'SaleItem',
]
