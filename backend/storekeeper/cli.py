# Overview: Flask CLI commands for bootstrap and inspection.

# backend/storekeeper/cli.py
# Commands (run from the backend directory with FLASK_APP=wsgi.py):
# - python -m flask store init-db
#   Create all tables (use `flask db upgrade` for migrated deployments).
# - python -m flask store open-session --pipeline mothercare --actor admin
#   Bootstrap the first accounting session of a pipeline (idempotent).
# - python -m flask store close-session --pipeline kitchen --actor admin --notes "Friday"
#   Close the current session, write its report, open the next one.
# - python -m flask store sessions --pipeline mothercare
#   List sessions newest first.

import click
from flask.cli import with_appcontext

from .errors import StorekeeperError
from .extensions import db
from .money import to_str
from .services import accounting_service
from .services.pipelines import PIPELINES

PIPELINE_CHOICE = click.Choice(sorted(PIPELINES))


@click.group('store')
def store_group():
    """Storekeeper bootstrap and session commands."""


@store_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created")


@store_group.command('open-session')
@click.option('--pipeline', 'pipeline_name', type=PIPELINE_CHOICE, required=True)
@click.option('--actor', 'actor_id', required=True, help='Actor id checked against the authorizer')
@with_appcontext
def open_session(pipeline_name, actor_id):
    """Bootstrap the first session of a pipeline."""
    try:
        session = accounting_service.open_first(pipeline_name, actor_id=actor_id)
    except StorekeeperError as exc:
        raise click.ClickException(exc.message)
    click.echo(f"PASS Current {pipeline_name} session: {session.id} (opened {session.opened_at})")


@store_group.command('close-session')
@click.option('--pipeline', 'pipeline_name', type=PIPELINE_CHOICE, required=True)
@click.option('--actor', 'actor_id', required=True, help='Actor id checked against the authorizer')
@click.option('--notes', default=None)
@with_appcontext
def close_session(pipeline_name, actor_id, notes):
    """Close the current session and open the next one."""
    try:
        report, new_session = accounting_service.close_and_reopen(
            pipeline_name, notes=notes, actor_id=actor_id
        )
    except StorekeeperError as exc:
        raise click.ClickException(exc.message)

    if report is None:
        click.echo("INFO Closed session had no sales; no report written")
    else:
        click.echo(
            f"PASS Report {report.id}: revenue {to_str(report.total_revenue)} over {report.total_sales} sales"
        )
    click.echo(f"PASS New {pipeline_name} session: {new_session.id}")


@store_group.command('sessions')
@click.option('--pipeline', 'pipeline_name', type=PIPELINE_CHOICE, required=True)
@with_appcontext
def list_sessions(pipeline_name):
    """List sessions, newest first."""
    sessions = accounting_service.list_sessions(pipeline_name)
    if not sessions:
        click.echo("No sessions yet.")
        return
    for index, session in enumerate(sessions):
        marker = "OPEN  " if index == 0 else "CLOSED"
        click.echo(f"{marker} {session.id:>5}  {session.opened_at}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(store_group)
