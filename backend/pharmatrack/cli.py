# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/pharmatrack/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables and the default admin and clerk users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and status.
# - python -m flask users create --name "Jane Doe" --email jane@pharmatrack.local --password "Password123!" --role clerk
#   Create a user (prompts if options are omitted).
#
# Inventory:
# - python -m flask products low-stock
#   List products at or under their reorder level.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.products_service import list_low_stock


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and default users.

    Creates:
    - admin/admin@pharmatrack.local (admin)
    - clerk/clerk@pharmatrack.local (clerk)
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing PharmaTrack...")
    db.create_all()
    click.echo("PASS Tables ready")

    default_password = "Password123!"
    default_users = [
        ("Administrator", "admin@pharmatrack.local", "admin"),
        ("Clerk", "clerk@pharmatrack.local", "clerk"),
    ]

    for name, email, role in default_users:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        try:
            create_user(name=name, email=email, password=default_password, role=role)
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except (PasswordValidationError, ValueError) as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo("   admin -> admin@pharmatrack.local / Password123!")
    click.echo("   clerk -> clerk@pharmatrack.local / Password123!")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        raise click.ClickException("Refusing to reset without --yes")
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with role and status."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return
    for u in users:
        click.echo(f"{u.id:>4}  {u.email:<32} {u.role:<6} {u.status}")


@users_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ROLES), default='clerk', show_default=True)
@with_appcontext
def create_user_command(name, email, password, role):
    """Create a user."""
    try:
        user = create_user(name=name, email=email, password=password, role=role)
    except (PasswordValidationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user {user.email} (ID: {user.id}) with role '{user.role}'")


@click.group('products')
def products_group():
    """Inventory inspection commands."""


@products_group.command('low-stock')
@with_appcontext
def low_stock():
    """List products at or under their reorder level."""
    products = list_low_stock()
    if not products:
        click.echo("No products at or under reorder level.")
        return
    for p in products:
        click.echo(f"{p.id:>4}  {p.name:<40} qty={p.quantity:<5} reorder={p.reorder_level}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
