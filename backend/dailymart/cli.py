# Overview: Flask CLI command groups for catalogue seeding, inspection and reports.

# dailymart/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Apply migrations: python -m flask db upgrade
# - Use: python -m flask <group> <command> [options]
#
# Catalogue:
# - python -m flask catalog seed
#   Insert a handful of sample products (skips barcodes that already exist).
# - python -m flask catalog low-stock [--threshold 5]
#   List active products below their low-stock threshold.
#
# Reports:
# - python -m flask reports daily [--date 2026-10-18]
#   Print the daily sales summary.
# - python -m flask reports stock-value
#   Print the value of stock on hand.
#
# Billing:
# - python -m flask billing next [--scheme daily|global]
#   Preview the next bill number (advisory; assigned for real at checkout).

import click
from flask.cli import with_appcontext

from .catalog import ProductCategory
from .errors import PosError
from .services import products_service, reporting_service, stock_service
from .services.billing_service import SCHEMES, next_bill_number


SAMPLE_PRODUCTS = [
    {"barcode": "8901030865278", "name": "Tata Tea Gold 250g", "category": ProductCategory.BEVERAGES,
     "buy_price_cents": 11000, "sell_price_cents": 13000, "quantity": 24},
    {"barcode": "8901063010034", "name": "Parle-G 800g", "category": ProductCategory.BISCUITS,
     "buy_price_cents": 7500, "sell_price_cents": 9000, "quantity": 30},
    {"barcode": "8901262150010", "name": "Amul Taaza Milk 1L", "category": ProductCategory.DAIRY,
     "buy_price_cents": 5800, "sell_price_cents": 6800, "quantity": 12},
    {"barcode": "8901058851298", "name": "Maggi Masala Noodles 280g", "category": ProductCategory.INSTANT_FOOD,
     "buy_price_cents": 4200, "sell_price_cents": 5000, "quantity": 3},
    {"barcode": "8901030704744", "name": "Surf Excel Easy Wash 1kg", "category": ProductCategory.DETERGENTS,
     "buy_price_cents": 11500, "sell_price_cents": 13500, "quantity": 8},
]


def _money(cents: int) -> str:
    return f"{cents / 100:,.2f}"


@click.group('catalog')
def catalog_group():
    """Product catalogue commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert sample products for a fresh install."""
    created = 0
    for fields in SAMPLE_PRODUCTS:
        if products_service.get_product_by_barcode(fields["barcode"]) is not None:
            click.echo(f"WARN  {fields['barcode']} already exists, skipping...")
            continue
        try:
            product = products_service.add_product(dict(fields))
        except PosError as e:
            click.echo(f"FAIL {fields['barcode']}: {e}")
            continue
        created += 1
        click.echo(f"PASS Created {product.name} (ID: {product.id}, qty {product.quantity})")

    click.echo(f"\nDONE {created} product(s) created")


@catalog_group.command('low-stock')
@click.option('--threshold', type=int, default=None, help='Override per-product thresholds')
@with_appcontext
def low_stock(threshold):
    """List active products running low, lowest quantity first."""
    products = stock_service.get_low_stock(threshold)
    if not products:
        click.echo("No products are low on stock.")
        return

    click.echo(f"{'BARCODE':<16} {'QTY':>5} {'MIN':>5}  NAME")
    for p in products:
        click.echo(f"{p.barcode:<16} {p.quantity:>5} {p.low_stock_threshold:>5}  {p.name}")


@click.group('reports')
def reports_group():
    """Sales and stock reports."""


@reports_group.command('daily')
@click.option('--date', 'day', default=None, help='Local date YYYY-MM-DD (default today)')
@with_appcontext
def daily(day):
    """Print the daily sales summary."""
    try:
        report = reporting_service.daily_sales_report(day)
    except PosError as e:
        raise click.ClickException(str(e))

    summary = report["summary"]
    click.echo(f"Daily sales for {report['date']}")
    click.echo(f"  Bills:          {summary['total_bills']}")
    click.echo(f"  Gross sales:    {_money(summary['gross_sales_cents'])}")
    click.echo(f"  Discounts:      {_money(summary['total_discount_cents'])}")
    click.echo(f"  Net sales:      {_money(summary['net_sales_cents'])}")
    click.echo(f"  Avg bill value: {_money(summary['avg_bill_value_cents'])}")


@reports_group.command('stock-value')
@with_appcontext
def stock_value():
    """Print the value of stock on hand."""
    report = reporting_service.stock_value_report()
    click.echo(f"Products:          {report['total_products']}")
    click.echo(f"Units on hand:     {report['total_units']}")
    click.echo(f"Investment:        {_money(report['total_investment_cents'])}")
    click.echo(f"Potential revenue: {_money(report['potential_revenue_cents'])}")
    click.echo(f"Potential profit:  {_money(report['potential_profit_cents'])}")


@click.group('billing')
def billing_group():
    """Bill numbering commands."""


@billing_group.command('next')
@click.option('--scheme', type=click.Choice(SCHEMES), default=None, help='Numbering scheme (default from config)')
@with_appcontext
def next_bill(scheme):
    """Preview the next bill number."""
    click.echo(next_bill_number(scheme=scheme))


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(catalog_group)
    app.cli.add_command(reports_group)
    app.cli.add_command(billing_group)
