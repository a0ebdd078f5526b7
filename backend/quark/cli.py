# Overview: Flask CLI command groups for bootstrap and user inspection.

# backend/quark/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, roles, permissions and default users.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles and active status.
# - python -m flask users create --username somchai --password "Password123!" --role staff
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import DEFAULT_ROLES
from .services.auth_service import create_user, create_default_roles, assign_role, PasswordValidationError
from .services import permission_service


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the workshop backend: tables, roles, permissions and default users.

    Creates:
    - Roles: admin, manager, staff
    - Users: admin, manager, staff
    - All passwords default to: "Password123!"

    SECURITY: Change passwords immediately in production!
    """
    click.echo("START Initializing Quark workshop backend...")

    db.create_all()

    click.echo("\nLIST Creating roles...")
    create_default_roles()
    click.echo(f"PASS Roles available: {', '.join(DEFAULT_ROLES)}")

    click.echo("\nSECURITY Initializing permissions...")
    perm_count = permission_service.initialize_permissions()
    assignment_count = permission_service.assign_default_role_permissions()
    click.echo(f"PASS Created {perm_count} permissions, {assignment_count} role assignments")

    click.echo("\nUSERS Creating default users...")

    # Default password meets requirements:
    # - Minimum 8 characters
    # - Uppercase, lowercase, digit, special char
    default_password = "Password123!"

    for username in DEFAULT_ROLES:
        existing = db.session.query(User).filter_by(username=username).first()
        if existing:
            click.echo(f"WARN  User '{username}' already exists, skipping...")
            continue

        try:
            user = create_user(username=username, password=default_password)
            assign_role(user.id, username)
            click.echo(f"PASS Created user: {username} with role '{username}'")
        except ValueError as e:
            db.session.rollback()
            click.echo(f"FAIL Failed to create user '{username}': {str(e)}")

    click.echo("\n" + "="*60)
    click.echo("DONE Quark workshop backend initialized")
    click.echo("="*60)
    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo("   admin   / Password123!")
    click.echo("   manager / Password123!")
    click.echo("   staff   / Password123!")
    click.echo("")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """DANGER: Drop all tables and recreate schema."""
    if not yes:
        click.confirm("This deletes ALL data. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset. Run 'python -m flask system init' to bootstrap.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--display-name', default=None, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(DEFAULT_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(username, display_name, password, role):
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
        user = create_user(username=username, password=password, display_name=display_name)
        assign_role(user.id, role)

        click.echo(f"PASS Created user: {username} with role '{role}' (ID: {user.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except ValueError as e:
        db.session.rollback()
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*80)
    click.echo(f"{'ID':<5} {'Username':<20} {'Display name':<25} {'Active':<8} {'Roles'}")
    click.echo("="*80)

    for user in users:
        role_names = permission_service.get_user_role_names(user.id)
        roles_str = ", ".join(role_names) if role_names else "none"
        active_str = "Yes" if user.is_active else "No"

        click.echo(f"{user.id:<5} {user.username:<20} {user.display_name or '-':<25} {active_str:<8} {roles_str}")

    click.echo("="*80 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
