import click
from flask.cli import AppGroup, with_appcontext

from researchx.config import get_settings
from researchx.errors import AppError
from researchx.extensions import db
from researchx.services import get_providers
from researchx.services.payment_service import PaymentService

settlements_cli = AppGroup("settlements", help="Inspect and resume payment settlements.")


def _payment_service():
    return PaymentService(get_settings(), get_providers().paystack)


@settlements_cli.command("list")
def list_settlements():
    """List settlements stopped between verification and completion."""
    projects = _payment_service().pending_settlements()
    if not projects:
        click.echo("No interrupted settlements.")
        return

    for project in projects:
        click.echo(
            f"{project.id}\t{project.settlement_state}\t"
            f"{project.transaction_reference}\t{project.updated_at:%Y-%m-%d %H:%M:%S}"
        )


@settlements_cli.command("reconcile")
def reconcile_settlements():
    """Resume every interrupted settlement from its last committed step."""
    service = _payment_service()
    resumed = failed = 0

    for project in service.pending_settlements():
        project_id = project.id
        try:
            if service.resume(project_id) is not None:
                resumed += 1
                click.echo(f"✅ {project_id} settled")
        except AppError as e:
            service.store.rollback()
            failed += 1
            click.echo(f"❌ {project_id}: {e.message}", err=True)

    click.echo(f"Resumed {resumed}, failed {failed}")
    if failed:
        raise SystemExit(1)


@click.command("init-db")
@with_appcontext
def init_db():
    """Create database tables"""
    db.create_all()
    click.echo("✅ Database initialized successfully!")


def register_commands(app):
    app.cli.add_command(settlements_cli)
    app.cli.add_command(init_db)
