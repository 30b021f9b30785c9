# Overview: The in-memory POS state and its persistence through the key-value storage.

from __future__ import annotations

import logging
import threading
from typing import Callable

from flask import current_app

from ..models import (
    BusinessSettings,
    HeldTransaction,
    Product,
    Sale,
    StockAdjustment,
    User,
)
from ..time_utils import utcnow
from ..validation import NotFoundError
from .document_service import ReceiptNumberGenerator
from .stock_service import DEFAULT_LOW_STOCK_THRESHOLD
from .storage_service import KeyValueStorage

logger = logging.getLogger(__name__)

"""
PesoPOS store invariants (authoritative)

- One PosStore per application holds the catalog, sales ledger, stock
  adjustment log, settings, categories, users and held carts.
- Reads may happen anywhere; writes go through the service modules, which
  take store.lock (services.concurrency.store_mutation) for the whole
  read-modify-write and end with one persist() call.
- Stock only changes through inventory_service.adjust_stock and
  sales_service.record_sale.
- persist() writes all touched keys in one storage transaction. If that
  write fails the failure is logged and the in-memory state stays the source
  of truth until the next successful write.
"""

PRODUCTS_KEY = "products"
SALES_KEY = "sales"
SETTINGS_KEY = "settings"
CATEGORIES_KEY = "categories"
ADJUSTMENTS_KEY = "stock_adjustments"
USERS_KEY = "users"
HELD_KEY = "held_transactions"
ALL_KEYS = (PRODUCTS_KEY, SALES_KEY, SETTINGS_KEY, CATEGORIES_KEY, ADJUSTMENTS_KEY, USERS_KEY, HELD_KEY)

DEFAULT_CATEGORIES = [
    "Beverages",
    "Snacks",
    "Instant Noodles",
    "Seasonings",
    "Personal Care",
    "Household",
    "Canned Goods",
    "Dairy",
    "Frozen",
    "Others",
]


class PosStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
        clock: Callable = utcnow,
    ):
        self.storage = storage
        self.low_stock_threshold = low_stock_threshold
        self.clock = clock
        self.lock = threading.RLock()
        self.receipt_numbers = ReceiptNumberGenerator()

        self.products: list[Product] = []
        self.sales: list[Sale] = []
        self.stock_adjustments: list[StockAdjustment] = []
        self.settings = BusinessSettings()
        self.categories: list[str] = list(DEFAULT_CATEGORIES)
        self.users: list[User] = []
        self.held_transactions: list[HeldTransaction] = []

    def now(self):
        return self.clock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _load_list(self, key: str, decode) -> list:
        raw = self.storage.get(key, [])
        if not isinstance(raw, list):
            logger.error("Ignoring stored %s: expected a list", key)
            return []
        try:
            return [decode(item) for item in raw]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Ignoring stored %s: %s", key, exc)
            return []

    def load(self) -> "PosStore":
        with self.lock:
            self.products = self._load_list(PRODUCTS_KEY, Product.from_dict)
            self.sales = self._load_list(SALES_KEY, Sale.from_dict)
            self.stock_adjustments = self._load_list(ADJUSTMENTS_KEY, StockAdjustment.from_dict)
            self.users = self._load_list(USERS_KEY, User.from_dict)
            self.held_transactions = self._load_list(HELD_KEY, HeldTransaction.from_dict)

            categories = self.storage.get(CATEGORIES_KEY, DEFAULT_CATEGORIES)
            self.categories = list(categories) if isinstance(categories, list) else list(DEFAULT_CATEGORIES)

            settings = self.storage.get(SETTINGS_KEY, None)
            try:
                self.settings = BusinessSettings.from_dict(settings if isinstance(settings, dict) else None)
            except TypeError as exc:
                logger.error("Ignoring stored settings: %s", exc)
                self.settings = BusinessSettings()
        return self

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _serialize(self, key: str):
        if key == PRODUCTS_KEY:
            return [p.to_dict() for p in self.products]
        if key == SALES_KEY:
            return [s.to_dict() for s in self.sales]
        if key == ADJUSTMENTS_KEY:
            return [a.to_dict() for a in self.stock_adjustments]
        if key == USERS_KEY:
            return [u.to_dict(include_hash=True) for u in self.users]
        if key == HELD_KEY:
            return [h.to_dict() for h in self.held_transactions]
        if key == CATEGORIES_KEY:
            return list(self.categories)
        if key == SETTINGS_KEY:
            return self.settings.to_dict()
        raise KeyError(key)

    def persist(self, *keys: str) -> bool:
        """Write the given keys together. False means the write was logged and dropped."""
        return self.storage.set_many({key: self._serialize(key) for key in keys})

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_product(self, product_id: str) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def require_product(self, product_id: str) -> Product:
        product = self.find_product(product_id)
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})
        return product

    def find_user(self, user_id: str) -> User | None:
        for user in self.users:
            if user.id == user_id:
                return user
        return None

    def find_sale(self, receipt_number: str) -> Sale | None:
        for sale in self.sales:
            if sale.receipt_number == receipt_number or sale.id == receipt_number:
                return sale
        return None


_store_init_lock = threading.Lock()


def get_store() -> PosStore:
    """The application's PosStore, loaded from storage on first use."""
    store = current_app.extensions.get("pos_store")
    if store is not None:
        return store
    with _store_init_lock:
        store = current_app.extensions.get("pos_store")
        if store is None:
            storage = KeyValueStorage(prefix=current_app.config["STORAGE_KEY_PREFIX"])
            store = PosStore(
                storage,
                low_stock_threshold=current_app.config["LOW_STOCK_THRESHOLD"],
            ).load()
            current_app.extensions["pos_store"] = store
    return store
