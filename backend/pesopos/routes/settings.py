# backend/pesopos/routes/settings.py
from flask import Blueprint, jsonify, request

from ..services.pos_store import get_store
from ..services.receipt_service import PREVIEW_LAYOUTS, layout_settings, render_receipt, sample_sale
from ..services.settings_service import get_settings, update_settings
from ..validation import PosError

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def read_settings():
    return jsonify(get_settings(get_store()).to_dict())


@settings_bp.patch("")
def patch_settings():
    payload = request.get_json(silent=True)
    try:
        settings = update_settings(get_store(), payload)
        return jsonify(settings.to_dict())
    except PosError as e:
        return e.to_response()


@settings_bp.get("/receipt-preview")
def receipt_preview():
    """
    Sample receipts for the layout presets, built on the shop's settings.

    Query param: layout (default | minimal | wide); omit for all three.
    """
    store = get_store()
    layout = request.args.get("layout")
    layouts = [layout] if layout else list(PREVIEW_LAYOUTS)
    sale = sample_sale(store.settings.vat_rate)
    try:
        previews = {name: render_receipt(sale, layout_settings(name, store.settings)) for name in layouts}
    except PosError as e:
        return e.to_response()
    return jsonify({"previews": previews})
