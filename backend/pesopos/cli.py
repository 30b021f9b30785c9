# Overview: Flask CLI command groups for bootstrap, demo data, stock alerts and receipts.

# backend/pesopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates the storage table, default settings,
#   categories and the admin / manager / cashier users.
# - python -m flask system reset --yes
#   DEV/TEST only: delete every stored key (catalog, sales, users, settings).
#
# Catalog:
# - python -m flask catalog seed-demo
#   Add demo products, including a T-shirt with size variants.
#
# Inventory:
# - python -m flask inventory alerts [--threshold 10]
#   List low-stock and out-of-stock products and variants.
#
# Receipts:
# - python -m flask receipts preview [--layout default|minimal|wide]
#   Render the sample sale with a preset layout.
# - python -m flask receipts show R-1729146600000
#   Re-print a recorded sale.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import catalog_service, user_service
from .services.pos_store import ALL_KEYS, get_store
from .services.receipt_service import PREVIEW_LAYOUTS, layout_settings, render_receipt, sample_sale
from .services.sales_service import get_sale
from .services.stock_service import (
    low_stock_products,
    out_of_stock_products,
    total_stock,
    variant_stock_alerts,
)
from .services.storage_service import StorageError
from .validation import PosError

DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("admin", "Administrator", user_service.ROLE_ADMIN),
    ("manager", "Store Manager", user_service.ROLE_MANAGER),
    ("cashier", "Cashier", user_service.ROLE_CASHIER),
]

DEMO_PRODUCTS = [
    {"name": "Coca-Cola 1.5L", "category": "Beverages", "price": 75, "cost": 60, "stock": 50, "barcode": "4900000001"},
    {"name": "Lays Classic Chips", "category": "Snacks", "price": 45, "cost": 35, "stock": 30, "barcode": "4900000002"},
    {"name": "Lucky Me Pancit Canton", "category": "Instant Noodles", "price": 16, "cost": 12, "stock": 8, "barcode": "4800016644290"},
    {"name": "Safeguard Soap", "category": "Personal Care", "price": 52, "stock": 0, "barcode": "4800888141125"},
    {
        "name": "T-Shirt",
        "category": "Others",
        "price": 250,
        "has_variants": True,
        "variants": [
            {"size": "S", "price": 250, "stock": 10, "barcode": "TS-S"},
            {"size": "M", "price": 250, "stock": 0, "barcode": "TS-M"},
            {"size": "L", "price": 270, "stock": 15, "barcode": "TS-L"},
        ],
    },
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize PesoPOS: storage table, default settings and categories, users.

    Default users (all with password "Password123!"): admin, manager, cashier.
    Existing data is left untouched.
    """
    click.echo("START Initializing PesoPOS...")

    db.create_all()
    store = get_store()
    if not store.persist(*ALL_KEYS):
        click.echo("FAIL Could not write to storage; see the log for details")
        raise SystemExit(1)
    click.echo(f"PASS Storage ready ({len(store.categories)} categories)")

    click.echo("\nUSERS Creating default users...")
    for username, name, role in DEFAULT_USERS:
        if user_service.get_user_by_username(store, username):
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            user_service.add_user(store, username=username, name=name, role=role, password=DEFAULT_PASSWORD)
            click.echo(f"PASS Created user: {username} with role '{role}'")
        except PosError as e:
            click.echo(f"FAIL Failed to create user '{username}': {e}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE PesoPOS Initialized Successfully!")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for username, _, _ in DEFAULT_USERS:
        click.echo(f"   {username:<9} / {DEFAULT_PASSWORD}")
    click.echo("")


@system_group.command('reset')
@click.option('--yes', is_flag=True, help='Confirm deletion of all stored data')
@with_appcontext
def reset_system(yes):
    """DEV/TEST only: delete every stored key."""
    if not yes:
        click.echo("Refusing to reset without --yes")
        raise SystemExit(1)

    store = get_store()
    try:
        removed = store.storage.clear()
    except StorageError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    current_app.extensions.pop("pos_store", None)
    click.echo(f"PASS Removed {removed} stored keys")


# =============================================================================
# CATALOG
# =============================================================================

@click.group('catalog')
def catalog_group():
    """Catalog commands."""


@catalog_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Add demo products (skips any whose barcode is already taken)."""
    store = get_store()
    created = 0
    for payload in DEMO_PRODUCTS:
        try:
            product = catalog_service.add_product(store, payload)
        except PosError as e:
            click.echo(f"WARN  {payload['name']}: {e}")
            continue
        created += 1
        click.echo(f"PASS {product.name} ({product.category}) stock={total_stock(product)}")
    click.echo(f"\nDONE Created {created} products")


# =============================================================================
# INVENTORY
# =============================================================================

@click.group('inventory')
def inventory_group():
    """Stock inspection commands."""


@inventory_group.command('alerts')
@click.option('--threshold', type=int, default=None, help='Low stock threshold (default: LOW_STOCK_THRESHOLD)')
@with_appcontext
def stock_alerts(threshold):
    """List low-stock and out-of-stock products and variants."""
    store = get_store()
    threshold = store.low_stock_threshold if threshold is None else threshold

    low = low_stock_products(store.products, threshold)
    out = out_of_stock_products(store.products)

    click.echo(f"\nLow stock (<= {threshold}): {len(low)}")
    for product in low:
        click.echo(f"  {product.name:<40} {total_stock(product):>6}")

    click.echo(f"\nOut of stock: {len(out)}")
    for product in out:
        click.echo(f"  {product.name}")

    alerts = variant_stock_alerts(store.products, threshold)
    if alerts:
        click.echo("\nVariants:")
        for alert in alerts:
            sizes = ", ".join(f"{v.size} ({v.stock})" for v in alert["variants"])
            click.echo(f"  {alert['product'].name} [{alert['type']}]: {sizes}")


# =============================================================================
# RECEIPTS
# =============================================================================

@click.group('receipts')
def receipts_group():
    """Receipt rendering commands."""


@receipts_group.command('preview')
@click.option('--layout', type=click.Choice(PREVIEW_LAYOUTS), default=None, help='Preset layout (default: all)')
@with_appcontext
def preview(layout):
    """Render the sample sale with the preset layouts."""
    store = get_store()
    sale = sample_sale(store.settings.vat_rate)
    for name in [layout] if layout else PREVIEW_LAYOUTS:
        click.echo(f"=== {name.upper()} RECEIPT SETTINGS ===")
        click.echo(render_receipt(sale, layout_settings(name, store.settings)))


@receipts_group.command('show')
@click.argument('receipt_number')
@with_appcontext
def show(receipt_number):
    """Re-print a recorded sale with the current settings."""
    store = get_store()
    try:
        sale = get_sale(store, receipt_number)
    except PosError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(render_receipt(sale, store.settings), nl=False)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(receipts_group)
