"""
Flask CLI commands for database setup.

Commands:
- flask init-db: Create the tables
- flask seed-roles: Create or refresh the built-in roles
"""

import click
from retailpos.database import get_session, create_all
from retailpos.services.role_service import seed_builtin_roles


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table that does not exist yet."""
        create_all()
        click.echo(click.style('Tables created.', fg='green'))

    @app.cli.command('seed-roles')
    def seed_roles_command():
        """Create the built-in roles and refresh their permissions."""
        db_session = get_session()
        try:
            created = seed_builtin_roles(db_session)
            db_session.commit()
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'Error seeding roles: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style(f'Built-in roles seeded ({created} created).', fg='green', bold=True))
