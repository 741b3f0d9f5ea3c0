# Overview: Flask CLI command groups for bootstrap, staff accounts, and maintenance.

# backend/herbtrade/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create all tables (idempotent). Use `flask db upgrade` for migrated deployments.
#
# Accounts:
# - python -m flask staff create-admin --email admin@herbtrade.local --password "secret1"
#   Create a platform admin (customer-side principal with role admin).
# - python -m flask staff create-delivery --email rider@herbtrade.local --password "secret1" --radius 8 --vehicle scooter
#   Create a delivery agent.
#
# Maintenance:
# - python -m flask maintenance cleanup-reset-tickets
#   Delete used or expired password reset tickets.
# - python -m flask maintenance cleanup-security-events --retention-days 90
#   Delete security events older than the retention window.

import click
from flask.cli import with_appcontext

from .errors import HerbTradeError
from .extensions import db
from .services import identity_service, maintenance_service
from .models.identity import VEHICLE_TYPES


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """Create all database tables that do not exist yet."""
    click.echo("START Initializing HerbTrade database...")
    db.create_all()
    click.echo("PASS Tables created")


@click.group('staff')
def staff_group():
    """Admin and staff account commands."""


@staff_group.command('create-admin')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', default=None)
@with_appcontext
def create_admin(email, password, name):
    """Create a platform admin account."""
    try:
        admin = identity_service.register_customer(email=email, password=password, name=name, role="admin")
    except HerbTradeError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Created admin {admin.email} (ID: {admin.id})")


@staff_group.command('create-delivery')
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', default=None)
@click.option('--radius', type=float, default=None, help='Max delivery radius in km')
@click.option('--vehicle', type=click.Choice(VEHICLE_TYPES), default='bike', show_default=True)
@with_appcontext
def create_delivery(email, password, name, radius, vehicle):
    """Create a delivery agent account (no welcome email)."""
    try:
        agent, _ = identity_service.create_staff_member(
            email=email,
            role="delivery",
            name=name,
            password=password,
            department="Delivery",
            vehicle_type=vehicle,
            max_delivery_radius_km=radius,
            notify=False,
        )
    except HerbTradeError as e:
        raise click.ClickException(e.message)
    click.echo(
        f"PASS Created delivery agent {agent.email} (ID: {agent.id}, "
        f"radius {agent.max_delivery_radius_km} km, {agent.vehicle_type})"
    )


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('cleanup-reset-tickets')
@with_appcontext
def cleanup_reset_tickets_cli():
    """Delete used or expired password reset tickets."""
    deleted = maintenance_service.cleanup_reset_tickets()
    click.echo(f"Deleted {deleted} password reset tickets.")


@maintenance_group.command('cleanup-security-events')
@click.option('--retention-days', type=int, default=90, show_default=True)
@with_appcontext
def cleanup_security_events_cli(retention_days):
    """
    Cleanup old security events.

    Default retention: 90 days.
    """
    deleted = maintenance_service.cleanup_security_events(retention_days=retention_days)
    click.echo(f"Deleted {deleted} security events older than {retention_days} days.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(maintenance_group)
