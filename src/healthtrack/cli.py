"""CLI for HealthTrack: run the API, manage the schema, seed demo data."""

from __future__ import annotations

import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path

import click

from healthtrack.config import AppConfig, ConfigError, load_config
from healthtrack.core.logging import configure_logging
from healthtrack.db import Database
from healthtrack.vitals import ParameterType, alerts_for, classify, get_locale, latest_summary

logger = logging.getLogger(__name__)


def _load(ctx: click.Context) -> AppConfig:
    """Load configuration once per invocation and configure logging from it."""
    config = ctx.obj.get("config")
    if config is None:
        try:
            config = load_config(ctx.obj.get("config_path"))
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        configure_logging(config.logging.level, config.logging.format, config.logging.log_root)
        ctx.obj["config"] = config
    return config


def _database(config: AppConfig) -> Database:
    return Database.from_env(
        config.db.name,
        min_pool_size=config.db.min_pool_size,
        max_pool_size=config.db.max_pool_size,
    )


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to healthtrack.toml",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """HealthTrack: personal vital-sign logging with normal-range alerts."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--host", default=None, help="Bind address (default from [server])")
@click.option("--port", type=int, default=None, help="Port (default from [server])")
@click.option("--no-migrate", is_flag=True, help="Skip schema migrations at startup")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None, no_migrate: bool) -> None:
    """Run the HTTP API."""
    import uvicorn

    from healthtrack.api.app import create_app

    config = _load(ctx)
    if not no_migrate:
        try:
            asyncio.run(_migrate(config))
        except Exception as exc:
            click.echo(f"Migration failed: {exc}", err=True)
            sys.exit(1)

    app = create_app(config)
    uvicorn.run(
        app,
        host=host or config.server.host,
        port=port or config.server.port,
        log_config=None,
    )


@cli.command()
@click.pass_context
def migrate(ctx: click.Context) -> None:
    """Create the database if needed and apply all migrations."""
    config = _load(ctx)
    try:
        asyncio.run(_migrate(config))
    except Exception as exc:
        click.echo(f"Migration failed: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Database {config.db.name} is up to date")


@cli.command()
@click.pass_context
def seed(ctx: click.Context) -> None:
    """Create the demo account and a week of sample readings."""
    config = _load(ctx)
    try:
        lines = asyncio.run(_seed(config))
    except Exception as exc:
        click.echo(f"Seeding failed: {exc}", err=True)
        sys.exit(1)
    for line in lines:
        click.echo(line)


@cli.command("classify")
@click.argument("parameter_type", type=click.Choice([m.value for m in ParameterType]))
@click.argument("value")
@click.option("--locale", "locale_name", default=None, help="Wording catalog (it, en)")
@click.pass_context
def classify_cmd(
    ctx: click.Context, parameter_type: str, value: str, locale_name: str | None
) -> None:
    """Classify a single VALUE against the normal range of PARAMETER_TYPE."""
    try:
        number = Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"{value!r} is not a number", param_hint="VALUE") from None
    if not number.is_finite():
        raise click.BadParameter(f"{value!r} is not a finite number", param_hint="VALUE")

    if locale_name is not None:
        try:
            locale = get_locale(locale_name)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--locale") from None
    else:
        locale = _load(ctx).locale.build_locale()

    result = classify(parameter_type, number, locale)
    click.echo(result.status.value)
    if result.message:
        click.echo(result.message)


async def _migrate(config: AppConfig) -> None:
    from healthtrack.migrations import run_migrations

    db = _database(config)
    await db.provision()
    await run_migrations(db.url)


async def _seed(config: AppConfig) -> list[str]:
    from healthtrack.seed import DEMO_EMAIL, DEMO_PASSWORD, seed_demo_data
    from healthtrack.storage import query_by_user

    db = _database(config)
    pool = await db.connect()
    try:
        result = await seed_demo_data(pool)
        readings = await query_by_user(pool, result.user.id)
    finally:
        await db.close()

    verb = "Created" if result.created_user else "Using existing"
    lines = [f"{verb} user {result.user.username} ({DEMO_EMAIL} / {DEMO_PASSWORD})"]
    if result.inserted:
        lines.append(f"Inserted {result.inserted} readings")
    else:
        lines.append(f"Found {result.existing} existing readings, nothing inserted")

    for alert in alerts_for(latest_summary(readings), config.locale.build_locale()):
        lines.append(f"{alert.title}: {alert.message}")
    return lines
