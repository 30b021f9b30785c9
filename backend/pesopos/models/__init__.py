from .storage import StorageEntry
from .catalog import Product, SimpleProduct, VariantProduct, Variant, new_id
from .inventory import StockAdjustment
from .sales import CartItem, Sale, HeldTransaction
from .settings import BusinessSettings
from .users import User

__all__ = [
    'StorageEntry',
    'Product', 'SimpleProduct', 'VariantProduct', 'Variant', 'new_id',
    'StockAdjustment',
    'CartItem', 'Sale', 'HeldTransaction',
    'BusinessSettings',
    'User',
]
