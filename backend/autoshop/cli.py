# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/autoshop/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates the schema and the default admin and mechanic users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list [--role mechanic]
#   List all users with role and active status.
# - python -m flask users create --email mech@autoshop.local --full-name "Mia Mechanic" --password "Password123!" --role mechanic
#   Create a user (prompts if options are omitted).
#
# Inventory:
# - python -m flask inventory low-stock
#   Items at or below their minimum stock level.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ROLE_ADMIN, ROLE_MECHANIC, VALID_ROLES, User
from .services.auth_service import PasswordValidationError, create_user
from .services.inventory_service import low_stock_query
from .validation import ConflictError, ValidationError


DEFAULT_PASSWORD = "Password123!"

DEFAULT_USERS = [
    ("admin@autoshop.local", "Shop Admin", ROLE_ADMIN),
    ("mechanic@autoshop.local", "Shop Mechanic", ROLE_MECHANIC),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the shop: tables plus default users.

    All passwords default to "Password123!". Change them in production!
    """
    click.echo("START Initializing autoshop...")

    db.create_all()
    click.echo("PASS Schema ready")

    click.echo("\nUSERS Creating default users...")
    for email, full_name, role in DEFAULT_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(email=email, password=DEFAULT_PASSWORD, full_name=full_name, role=role)
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except (PasswordValidationError, ValidationError, ConflictError) as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    click.echo("\n" + "=" * 60)
    click.echo("DONE autoshop initialized")
    click.echo("=" * 60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for email, _name, role in DEFAULT_USERS:
        click.echo(f"   {role:<9} -> {email:<26} / {DEFAULT_PASSWORD}")
    click.echo("")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


# =============================================================================
# USER MANAGEMENT COMMANDS
# =============================================================================

@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--full-name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), prompt=True, help='Role')
@click.option('--phone', default=None, help='Phone number')
@with_appcontext
def create_user_cli(email, full_name, password, role, phone):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        user = create_user(email=email, password=password, full_name=full_name, role=role, phone=phone)
    except (PasswordValidationError, ValidationError, ConflictError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), help='Filter by role')
@with_appcontext
def list_users(role):
    """List all users with their role."""
    query = db.session.query(User)
    if role:
        query = query.filter_by(role=role)

    users = query.order_by(User.email.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 100)
    click.echo(f"{'ID':<38} {'Email':<30} {'Role':<10} {'Active':<8} {'Name'}")
    click.echo("=" * 100)
    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<38} {user.email:<30} {user.role:<10} {active_str:<8} {user.full_name}")
    click.echo("=" * 100 + "\n")


# =============================================================================
# INVENTORY COMMANDS
# =============================================================================

@click.group('inventory')
def inventory_group():
    """Inventory inspection commands."""


@inventory_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List items at or below their minimum stock level."""
    items = low_stock_query().all()
    if not items:
        click.echo("PASS No low-stock items.")
        return

    click.echo(f"{'SKU':<20} {'Name':<40} {'Stock':>6} {'Min':>6}")
    for item in items:
        click.echo(f"{item.sku:<20} {item.name:<40} {item.stock_quantity:>6} {item.min_stock_level:>6}")
    click.echo(f"\nWARN {len(items)} item(s) need restocking")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
