# backend/pesopos/routes/system.py
"""
System health endpoint.

Reports whether the key-value storage table answers and how much state the
in-memory store currently holds.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StorageEntry
from ..services.pos_store import get_store
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_storage_health() -> dict:
    start_time = time.time()
    try:
        entry_count = db.session.query(StorageEntry).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"entries": entry_count},
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Storage health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    storage = check_storage_health()
    store = get_store()
    body = {
        "status": storage["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"storage": storage},
        "counts": {
            "products": len(store.products),
            "sales": len(store.sales),
            "stock_adjustments": len(store.stock_adjustments),
            "users": len(store.users),
            "held_transactions": len(store.held_transactions),
        },
    }
    return body, 200 if storage["status"] == "healthy" else 503
