# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockflow/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--store "Main Store"] [--admin-password "..."]
#   Idempotent bootstrap: creates tables, a default store and an admin employee.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions [--older-than-days 30]
#   Delete expired or revoked session tokens.
#
# Employees:
# - python -m flask employees list
#   List employees with position, home store and active flag.
# - python -m flask employees create --username ana --first-name Ana --last-name Rojas --position SALES --store-id 1
#   Create an employee (prompts for the password).
#
# Exchange rates:
# - python -m flask rates set 6.96
#   Record a new exchange rate; prices follow immediately.
# - python -m flask rates current
#   Show the rate currently used for pricing.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Employee, Store
from .permissions import ROLE_ADMIN, ROLES
from .services import auth_service, pricing_service, session_service
from .validation import ConflictError, NotFoundError, ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store', 'store_name', default='Main Store', help='Name of the default store')
@click.option('--admin-username', default='admin', help='Username of the bootstrap administrator')
@click.option('--admin-password', default='Password123!', help='Password of the bootstrap administrator')
@with_appcontext
def init_system(store_name, admin_username, admin_password):
    """
    Initialize Stockflow: tables, a default store and an administrator.

    Safe to run repeatedly; existing rows are reused.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing Stockflow...")
    db.create_all()

    store = db.session.query(Store).order_by(Store.id.asc()).first()
    if not store:
        store = Store(name=store_name)
        db.session.add(store)
        db.session.commit()
        click.echo(f"PASS Created default store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    existing = db.session.query(Employee).filter_by(username=admin_username).first()
    if existing:
        click.echo(f"WARN  Employee '{admin_username}' already exists, skipping...")
    else:
        try:
            admin = auth_service.create_employee({
                "first_name": "System",
                "last_name": "Administrator",
                "position": ROLE_ADMIN,
                "username": admin_username,
                "password": admin_password,
                "store_id": store.id,
            })
        except ValidationError as e:
            raise click.ClickException(f"Could not create administrator: {e}")
        click.echo(f"PASS Created administrator: {admin.username} (ID: {admin.id})")

    rate = pricing_service.current_rate()
    if rate is None:
        click.echo("WARN  No exchange rate recorded yet. Run 'python -m flask rates set <rate>' before selling.")

    click.echo("\nDONE Stockflow initialized.")
    click.echo(f"   {admin_username} / {admin_password}  (CHANGE IN PRODUCTION!)")


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


@system_group.command('cleanup-sessions')
@click.option('--older-than-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions(older_than_days):
    """Delete expired or revoked session tokens."""
    deleted = session_service.cleanup_expired_sessions(older_than_days=older_than_days)
    click.echo(f"PASS Deleted {deleted} session token(s)")


@click.group('employees')
def employees_group():
    """Employee inspection and bootstrap commands."""


@employees_group.command('list')
@with_appcontext
def list_employees():
    """List all employees."""
    employees = auth_service.list_employees()

    if not employees:
        click.echo("No employees found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Name':<28} {'Position':<10} {'Store':<7} {'Active'}")
    click.echo("="*80)

    for employee in employees:
        active_str = "Yes" if employee.is_active else "No"
        store_str = str(employee.store_id) if employee.store_id is not None else "-"
        click.echo(
            f"{employee.id:<5} {employee.username:<20} {employee.full_name:<28} "
            f"{employee.position:<10} {store_str:<7} {active_str}"
        )

    click.echo("="*80 + "\n")


@employees_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--position', type=click.Choice(ROLES, case_sensitive=False), prompt=True, help='Position')
@click.option('--store-id', type=int, default=None, help='Home store (required for SALES)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_employee_cli(username, first_name, last_name, position, store_id, password):
    """Create an employee. Password must be at least 8 characters."""
    try:
        employee = auth_service.create_employee({
            "username": username,
            "first_name": first_name,
            "last_name": last_name,
            "position": position,
            "store_id": store_id,
            "password": password,
        })
    except (ValidationError, ConflictError, NotFoundError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created employee: {employee.username} (ID: {employee.id}, position {employee.position})")


@click.group('rates')
def rates_group():
    """Exchange rate commands."""


@rates_group.command('set')
@click.argument('rate')
@with_appcontext
def set_rate(rate):
    """Record a new exchange rate."""
    try:
        row = pricing_service.record_rate(rate)
    except ValidationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Exchange rate set to {row.rate} (ID: {row.id})")


@rates_group.command('current')
@with_appcontext
def current_rate():
    """Show the rate currently used for pricing."""
    row = pricing_service.current_rate_row()
    if row is None:
        click.echo("No exchange rate recorded.")
        return
    click.echo(f"{row.rate} (recorded {row.to_dict()['created_at']})")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(rates_group)
