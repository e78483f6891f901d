# Overview: Flask CLI command groups for the stand-in API (users, impersonation tokens, settings).

# backend/tenant_console/cli.py
# Commands Legend:
# - flask --app tenant_console.mock_backend users list
#   List seeded users and their tenants.
# - flask --app tenant_console.mock_backend users create --email a@b.test --tenant tenant-x
#   Create a user (prompts for the password).
# - flask --app tenant_console.mock_backend impersonation issue admin@acme.test [--ttl 300]
#   Print a single-use impersonation token and the console link that consumes it.
# - flask --app tenant_console.mock_backend settings init tenant-acme
#   Create every catalog default missing for a tenant.
#
# State is in memory: tokens issued by a CLI process are only valid for a
# server started in that same process (use them from tests or a shell).

import click
from flask import current_app
from flask.cli import with_appcontext

from .mock_backend.state import get_state


@click.group('users')
def users_group():
    """Stand-in user commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    for user in get_state().users.values():
        click.echo(f"{user.email:32} tenant={user.tenant_id or '-':16} role={user.role}")


@users_group.command('create')
@click.option('--email', required=True)
@click.option('--tenant', 'tenant_id', default=None)
@click.option('--role', default='ADMIN')
@click.password_option()
@with_appcontext
def create_user(email, tenant_id, role, password):
    try:
        user = get_state().add_user(email, password, tenant_id, role=role)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"PASS Created {user.email} (ID: {user.id})")


@click.group('impersonation')
def impersonation_group():
    """Impersonation token commands."""


@impersonation_group.command('issue')
@click.argument('email')
@click.option('--ttl', default=None, type=int, help='Token lifetime in seconds')
@with_appcontext
def issue_token(email, ttl):
    ttl = ttl or current_app.config["IMPERSONATION_TOKEN_TTL_SECONDS"]
    try:
        token = get_state().issue_impersonation_token(email, ttl)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    click.echo(token)
    click.echo(f"/impersonate?token={token}")


@click.group('settings')
def settings_group():
    """Tenant settings commands."""


@settings_group.command('init')
@click.argument('tenant_id')
@with_appcontext
def init_settings(tenant_id):
    created = get_state().initialize_defaults(tenant_id)
    click.echo(f"PASS Created {created} default settings for {tenant_id}")


def register_commands(app):
    app.cli.add_command(users_group)
    app.cli.add_command(impersonation_group)
    app.cli.add_command(settings_group)
