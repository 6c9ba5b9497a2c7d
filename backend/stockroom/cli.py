# Overview: Flask CLI command groups for bootstrap and stock consistency checks.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrated deployments).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Insert a demo category, supplier, products and customer, then record a few movements.
#
# Stock:
# - python -m flask stock audit
#   Compare each product's stock with initial_stock + entries - exits; exit code 1 on mismatch.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .errors import StockroomError
from .services import catalog_service, customers_service, movement_service, products_service
from .services.reporting_service import stock_audit
from .services.unit_of_work import SqlAlchemyUnitOfWork


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Insert demo catalog data and a handful of movements."""
    try:
        category = catalog_service.create_category(SqlAlchemyUnitOfWork(), {"name": "Bebidas"})
        supplier = catalog_service.create_supplier(
            SqlAlchemyUnitOfWork(), {"name": "Distribuidora Central", "email": "contato@central.example"}
        )
        coffee = products_service.register_product(
            SqlAlchemyUnitOfWork(),
            {
                "name": "Cafe 500g",
                "price": "18.90",
                "cost_price": "11.20",
                "stock": 20,
                "category_id": category["id"],
                "supplier_id": supplier["id"],
                "sku": "CAF-500",
                "brand": "Serra",
            },
            default_minimum_stock=current_app.config["DEFAULT_MINIMUM_STOCK"],
        )
        juice = products_service.register_product(
            SqlAlchemyUnitOfWork(),
            {"name": "Suco de Uva 1L", "price": "9.50", "stock": 0, "category_id": category["id"], "sku": "SUC-UVA-1L"},
            default_minimum_stock=current_app.config["DEFAULT_MINIMUM_STOCK"],
        )
        customer = customers_service.register_customer(
            SqlAlchemyUnitOfWork(),
            {"name": "Cliente Demo", "email": "cliente@demo.example", "password": "demo123"},
            bcrypt_rounds=current_app.config["BCRYPT_ROUNDS"],
        )
    except StockroomError as e:
        raise click.ClickException(f"seed failed: {e.message} (already seeded?)")

    movement_service.record_entry(SqlAlchemyUnitOfWork(), product_id=juice["id"], quantity=12, unit_price="5.10")
    movement_service.record_sale(
        SqlAlchemyUnitOfWork(), product_id=coffee["id"], customer_id=customer["id"], quantity=3, unit_price="18.90"
    )
    click.echo(f"PASS Seeded category {category['id']}, products {coffee['id']} and {juice['id']}, customer {customer['id']}.")


@click.group('stock')
def stock_group():
    """Stock consistency commands."""


@stock_group.command('audit')
@with_appcontext
def audit():
    """Check stock == initial_stock + entries - exits for every product."""
    discrepancies = stock_audit(db.session)
    if not discrepancies:
        click.echo("PASS All product stock counters match their movement history.")
        return

    for row in discrepancies:
        click.echo(
            f"FAIL product {row['product_id']} ({row['name']}): stock={row['stock']} "
            f"expected={row['expected_stock']} difference={row['difference']:+d}"
        )
    raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(stock_group)
