from .catalog import StockStatus, Category, Product, FoodItem
from .sales import Sale, FoodSale
from .sessions import AccountSession, KitchenSession, Report, KitchenReport

__all__ = [
    'StockStatus', 'Category', 'Product', 'FoodItem',
    'Sale', 'FoodSale',
    'AccountSession', 'KitchenSession', 'Report', 'KitchenReport',
]
