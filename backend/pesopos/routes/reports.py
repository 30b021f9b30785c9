# backend/pesopos/routes/reports.py
"""
Reporting routes. Days are calendar days in the shop's timezone.
"""
from datetime import date

from flask import Blueprint, jsonify, request

from ..services import reporting_service
from ..services.pos_store import get_store
from ..time_utils import to_local
from ..validation import PosError, ValidationError

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _day_arg(store) -> date:
    value = request.args.get("date")
    if not value:
        return to_local(store.now(), store.settings.timezone).date()
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")


@reports_bp.get("/daily")
def daily_report():
    store = get_store()
    try:
        return jsonify(reporting_service.daily_summary(store, _day_arg(store)))
    except PosError as e:
        return e.to_response()


@reports_bp.get("/monthly")
def monthly_report():
    store = get_store()
    today = to_local(store.now(), store.settings.timezone).date()
    year = request.args.get("year", type=int) or today.year
    month = request.args.get("month", type=int) or today.month
    try:
        revenue = reporting_service.monthly_revenue(store, year, month)
        return jsonify({"year": year, "month": month, "revenue": revenue})
    except PosError as e:
        return e.to_response()


@reports_bp.get("/top-products")
def top_products():
    store = get_store()
    limit = request.args.get("limit", default=5, type=int)
    try:
        day = _day_arg(store) if request.args.get("date") else None
        rows = reporting_service.top_selling_products(store, limit=limit, day=day)
        return jsonify({"items": rows})
    except PosError as e:
        return e.to_response()
