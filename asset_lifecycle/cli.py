"""
Flask CLI commands

    flask build-db [--sample-data]
    flask depreciation run [--as-of YYYY-MM-DD] [--business-unit ID] [--actor ID] [--recorded-usage]
    flask depreciation due [--as-of YYYY-MM-DD] [--business-unit ID]
"""

import json

import click
from flask import current_app
from flask.cli import AppGroup, with_appcontext

from asset_lifecycle.buisness.depreciation.scheduler import DepreciationScheduler
from asset_lifecycle.buisness.depreciation.usage import RecordedUsageSource
from asset_lifecycle.services.depreciation_service import DepreciationService
from asset_lifecycle.utils.logger import get_logger

logger = get_logger("asset_lifecycle.cli")

depreciation_cli = AppGroup('depreciation', help='Periodic depreciation runs')


@click.command('build-db')
@click.option('--sample-data', is_flag=True, help='Insert reference business units and categories')
@with_appcontext
def build_db_command(sample_data):
    """Create database tables."""
    from asset_lifecycle.build import build_database

    build_database(sample_data=sample_data)
    click.echo('Database tables created.')


@depreciation_cli.command('run')
@click.option('--as-of', type=click.DateTime(formats=['%Y-%m-%d']), default=None, help='Run date (default: today)')
@click.option('--business-unit', 'business_unit_id', type=int, default=None, help='Only this business unit')
@click.option('--actor', 'actor_id', type=int, default=None, help='Actor the postings are attributed to')
@click.option('--recorded-usage/--no-recorded-usage', default=None,
              help='Derive units-of-production usage from recorded meter readings')
def run_command(as_of, business_unit_id, actor_id, recorded_usage):
    """Post one period for every asset that is due."""
    if actor_id is None:
        actor_id = current_app.config['DEPRECIATION_DEFAULT_ACTOR_ID']
    if recorded_usage is None:
        recorded_usage = current_app.config.get('DEPRECIATION_USE_RECORDED_UNITS', False)

    scheduler = DepreciationScheduler(usage_source=RecordedUsageSource() if recorded_usage else None)
    summary = scheduler.run_batch(
        as_of=as_of.date() if as_of else None,
        actor_id=actor_id,
        business_unit_id=business_unit_id,
    )

    click.echo(
        f"As of {summary.as_of.isoformat()}: processed {summary.processed}, skipped {summary.skipped}, "
        f"failed {summary.failed}, total depreciation {summary.to_dict()['total_depreciation']}"
    )
    for failure in summary.failures:
        click.echo(f"  asset {failure.asset_id}: {failure.error_type}: {failure.message}", err=True)
    if summary.failed:
        logger.warning(f"Depreciation run finished with {summary.failed} failed assets")
        raise SystemExit(1)


@depreciation_cli.command('due')
@click.option('--as-of', type=click.DateTime(formats=['%Y-%m-%d']), default=None)
@click.option('--business-unit', 'business_unit_id', type=int, default=None)
@click.option('--json', 'as_json', is_flag=True, help='Print JSON instead of a table')
def due_command(as_of, business_unit_id, as_json):
    """List assets due for depreciation."""
    assets = DepreciationService.get_assets_due(as_of.date() if as_of else None, business_unit_id)
    if as_json:
        click.echo(json.dumps([a.to_dict() for a in assets], indent=2))
        return
    for asset in assets:
        click.echo(
            f"{asset.id:>6}  {asset.item_code:<20} {asset.next_depreciation_date.isoformat()}  "
            f"{asset.current_book_value}"
        )
    click.echo(f"{len(assets)} assets due")


def init_app(app):
    app.cli.add_command(build_db_command)
    app.cli.add_command(depreciation_cli)
