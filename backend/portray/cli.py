# Overview: Flask CLI command groups for bootstrap, user provisioning, and maintenance.

# backend/portray/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to portray (PowerShell: $env:FLASK_APP="portray").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--no-menus]
#   Idempotent bootstrap: subscription types, seed SystemAdmin, default menus.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users seed-admin
#   Create the SystemAdmin named by SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.
# - python -m flask users create --email ops@example.com --password "Password123!" --role SystemAdmin
#   Create a user (prompts if options are omitted).
# - python -m flask users list
#   List all users with role and active status.
#
# Maintenance:
# - python -m flask sessions cleanup
#   Delete expired bearer sessions.

import click
from flask.cli import with_appcontext

from .errors import PortRayError
from .extensions import db
from .models import User
from .roles import VALID_ROLES
from .services import auth_service, menu_service, session_service, terminal_service, user_service


def _seed_admin() -> None:
    try:
        user, created = auth_service.ensure_seed_admin()
    except PortRayError as e:
        click.echo(f"FAIL Seed admin not created: {e.message}")
        return

    if user is None:
        click.echo("WARN  SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD not set; no SystemAdmin seeded")
    elif created:
        click.echo(f"PASS Created SystemAdmin: {user.email}")
    else:
        click.echo(f"PASS SystemAdmin already present: {user.email}")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-menus', is_flag=True, help='Skip creating the default navigation menus')
@with_appcontext
def init_system(no_menus):
    """
    Initialize PortRay: lookups, first administrator and navigation.

    Creates (when missing):
    - Subscription types: 1, 12, 24 and 48 months
    - SystemAdmin from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD
    - Default glink/plink menus (unless --no-menus)
    """
    click.echo("START Initializing PortRay...")

    created = terminal_service.ensure_subscription_types()
    click.echo(f"PASS Subscription types ready ({created} created)")

    _seed_admin()

    if not no_menus:
        menus = menu_service.ensure_default_menus()
        click.echo(f"PASS Default menus ready ({menus} created)")

    click.echo("DONE PortRay initialized")


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


@click.group('users')
def users_group():
    """User provisioning commands."""


@users_group.command('seed-admin')
@with_appcontext
def seed_admin_cli():
    """Create the configured SystemAdmin if it does not exist yet."""
    _seed_admin()


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), prompt=True, help='Role')
@click.option('--first-name', default='', help='First name')
@click.option('--last-name', default='', help='Last name')
@with_appcontext
def create_user_cli(email, password, role, first_name, last_name):
    """Create an active user with a password."""
    data = {"email": email, "password": password, "role": role}
    if first_name:
        data["first_name"] = first_name
    if last_name:
        data["last_name"] = last_name

    try:
        user = user_service.create_user(data)
    except PortRayError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{user.role}'")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their role and status."""
    users = db.session.query(User).order_by(User.email).all()
    if not users:
        click.echo("No users found.")
        return

    for user in users:
        status = "active" if user.is_active else "inactive"
        pending = " (password setup pending)" if user.password_hash == auth_service.PENDING_SETUP else ""
        click.echo(f"{user.id:>5}  {user.email:<40} {user.role:<12} {status}{pending}")


@click.group('sessions')
def sessions_group():
    """Bearer session maintenance."""


@sessions_group.command('cleanup')
@with_appcontext
def cleanup_sessions():
    """Delete expired sessions."""
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} expired session(s)")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(sessions_group)
