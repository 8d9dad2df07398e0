# Overview: Flask CLI command groups for bootstrap, users, catalog seeding and backups.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, store settings and default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
# - python -m flask users create --username admin --email admin@pos.local --password "Password123!" --role admin
#
# Catalog:
# - python -m flask catalog seed
#   Add a handful of demo products, customers and a supplier.
#
# Backups:
# - python -m flask backup export backup.json
# - python -m flask backup import backup.json

import json

import click
from flask.cli import with_appcontext

from .errors import PosError
from .extensions import db
from .models import ROLES, User
from .services.auth_service import create_user, PasswordValidationError
from .services import catalog_service, export_service, settings_service


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("admin", "admin@pos.local", "admin"),
    ("manager", "manager@pos.local", "manager"),
    ("cashier", "cashier@pos.local", "cashier"),
]

DEMO_PRODUCTS = [
    {"name": "Mineral Water 1.5L", "sku": "DRK-001", "category": "Drinks", "price": 45, "cost": 30,
     "stock": 120, "minStock": 24},
    {"name": "Orange Juice 1L", "sku": "DRK-002", "category": "Drinks", "price": 180, "cost": 120,
     "stock": 8, "minStock": 10},
    {"name": "Whole Wheat Bread", "sku": "BKR-001", "category": "Bakery", "price": 60, "cost": 35,
     "stock": 30, "minStock": 5},
    {"name": "Olive Oil 1L", "sku": "GRC-001", "category": "Grocery", "price": 1200, "cost": 900,
     "stock": 0, "minStock": 3},
]

DEMO_CUSTOMERS = [
    {"name": "Amina Benali", "email": "amina@example.com", "phone": "0550000001"},
    {"name": "Karim Haddad", "email": "karim@example.com", "phone": "0550000002", "loyaltyPoints": 40},
]

DEMO_SUPPLIERS = [
    {"name": "Atlas Distribution", "contactPerson": "Samir", "email": "orders@atlas.example",
     "paymentTerms": "Net 30"},
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the POS: schema, store settings and default users.

    Default users (CHANGE IN PRODUCTION!):
    admin / manager / cashier, all with password "Password123!".
    """
    click.echo("START Initializing POS system...")

    db.create_all()
    click.echo("PASS Schema ready")

    settings = settings_service.get_store_settings()
    settings_service.update_store_settings(settings)
    click.echo(f"PASS Store settings: {settings['storeName']} ({settings['currency']}, tax {settings['taxRate']}%)")

    click.echo("\nUSERS Creating default users...")
    for username, email, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(username=username).first():
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue
        try:
            create_user(username=username, email=email, password=DEFAULT_PASSWORD, role=role)
            click.echo(f"PASS Created user: {username} ({email}) with role '{role}'")
        except PosError as e:
            click.echo(f"FAIL Failed to create user '{username}': {e.message}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE POS System Initialized")
    click.echo("=" * 60)
    click.echo(f"\nDefault password for all users: {DEFAULT_PASSWORD}")
    click.echo("SECURITY WARNING: change all passwords immediately in production!")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate schema. This will DELETE ALL DATA!"""
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    click.echo("BUILD Creating all tables...")
    db.create_all()
    click.echo("PASS Database reset complete. Run 'flask system init' to bootstrap users.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Role':<10} {'Active'}")
    click.echo("=" * 80)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {user.role:<10} {active_str}")
    click.echo("")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='cashier', show_default=True)
@click.option('--display-name', default=None)
@with_appcontext
def create_user_command(username, email, password, role, display_name):
    """Create a user (prompts if options are omitted)."""
    try:
        user = create_user(username=username, email=email, password=password, role=role,
                           display_name=display_name)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e.message}")
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created user {user.username} (ID: {user.id}) with role '{user.role}'")


@click.group('catalog')
def catalog_group():
    """Catalog maintenance commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Add demo products, customers and suppliers. Existing SKUs are skipped."""
    created = 0
    for product in DEMO_PRODUCTS:
        try:
            catalog_service.create_product(product)
            created += 1
        except PosError as e:
            click.echo(f"WARN  {product['sku']}: {e.message}")
    for customer in DEMO_CUSTOMERS:
        catalog_service.create_customer(customer)
    for supplier in DEMO_SUPPLIERS:
        catalog_service.create_supplier(supplier)
    click.echo(f"PASS Seeded {created} products, {len(DEMO_CUSTOMERS)} customers, {len(DEMO_SUPPLIERS)} suppliers")


@click.group('backup')
def backup_group():
    """JSON backup and restore."""


@backup_group.command('export')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_backup(path):
    data = export_service.export_backup()
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)
    counts = ", ".join(f"{k}={len(v)}" for k, v in data.items() if isinstance(v, list))
    click.echo(f"PASS Backup written to {path} ({counts})")


@backup_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@with_appcontext
def import_backup(path):
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    try:
        counts = export_service.import_backup(data)
    except PosError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Imported {counts}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
    app.cli.add_command(backup_group)
