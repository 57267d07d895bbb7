"""
Main CLI interface for cloudprovision.

This module provides a command-line interface for provisioning and removing
object storage buckets, cache clusters and database instances.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Optional

import click

from .. import __version__
from ..config.settings import get_settings
from ..logging_utils import configure_logging
from ..providers.base import (
    CacheDescriptor,
    CacheEngine,
    CloudResourceProvider,
    DatabaseDescriptor,
    DatabaseEngine,
    DeploymentTier,
)
from ..providers.errors import ProviderError
from ..providers.registry import ProviderFactory

logger = logging.getLogger(__name__)

TIER_CHOICES = click.Choice([tier.value for tier in DeploymentTier])


def _run(operation: Awaitable[Any]) -> Any:
    """Run a provider coroutine, exiting with status 1 on provider errors."""
    try:
        return asyncio.run(operation)
    except ProviderError as e:
        logger.debug("Command failed", exc_info=True)
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


def _provider(ctx: click.Context) -> CloudResourceProvider:
    factory = ProviderFactory(ctx.obj["settings"])
    return factory.get(ctx.obj["vendor"])


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--vendor", help="Cloud vendor (aws, gcp, azure)")
@click.pass_context
def cli(ctx, verbose, vendor):
    """cloudprovision - Multi-cloud storage, cache and database provisioning"""
    settings = get_settings()
    configure_logging(settings.monitoring, level="DEBUG" if verbose else None)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["vendor"] = vendor or settings.cloud.default_vendor


@cli.command()
@click.pass_context
def check(ctx):
    """Verify credentials against the cloud vendor."""

    async def _check():
        provider = _provider(ctx)
        return await provider.check_connection()

    identity = _run(_check())
    click.echo("✅ Connected")
    for key, value in identity.items():
        click.echo(f"   {key}: {value}")


@cli.command()
@click.pass_context
def config(ctx):
    """Show the effective configuration with secrets masked."""
    click.echo(json.dumps(ctx.obj["settings"].get_safe_dict(), indent=2, default=str))


@cli.command()
def version():
    """Show version information."""
    click.echo("cloudprovision")
    click.echo(f"Version: {__version__}")


# Object storage


@cli.group()
def storage():
    """Manage object storage buckets."""


@storage.command("create")
@click.argument("name")
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def storage_create(ctx, name, timeout):
    """Create a bucket (succeeds if it already exists)."""

    async def _create():
        provider = _provider(ctx)
        await provider.create_storage(name, timeout=timeout)

    _run(_create())
    click.echo(f"🪣 Bucket {name} is available")


@storage.command("list")
@click.pass_context
def storage_list(ctx):
    """List buckets owned by the account."""

    async def _list():
        provider = _provider(ctx)
        return await provider.list_storage()

    names = _run(_list())
    if not names:
        click.echo("No buckets found")
        return
    for name in names:
        click.echo(name)


@storage.command("remove")
@click.argument("name")
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def storage_remove(ctx, name, timeout):
    """Empty and remove a bucket."""

    async def _remove():
        provider = _provider(ctx)
        await provider.remove_storage(name, timeout=timeout)

    _run(_remove())
    click.echo(f"🗑️  Bucket {name} removed")


# Managed cache


def _cache_descriptor(
    name: str, engine: str, engine_version: Optional[str], tier: str
) -> CacheDescriptor:
    return CacheDescriptor(
        cluster_name=name,
        engine=CacheEngine(engine),
        engine_version=engine_version or "",
        tier=DeploymentTier(tier),
    )


@cli.group()
def cache():
    """Manage cache clusters."""


@cache.command("create")
@click.argument("name")
@click.option(
    "--engine",
    type=click.Choice([engine.value for engine in CacheEngine]),
    default=CacheEngine.REDIS.value,
    show_default=True,
)
@click.option("--engine-version", help="Engine version, e.g. 7.0")
@click.option("--tier", type=TIER_CHOICES, default="dev", show_default=True)
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def cache_create(ctx, name, engine, engine_version, tier, timeout):
    """Provision a cache cluster and print its coordinates."""

    async def _create():
        descriptor = _cache_descriptor(name, engine, engine_version, tier)
        provider = _provider(ctx)
        return await provider.create_cache(descriptor, timeout=timeout)

    coordinates = _run(_create())
    click.echo(str(coordinates))


@cache.command("remove")
@click.argument("name")
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def cache_remove(ctx, name, timeout):
    """Delete a cache cluster."""

    async def _remove():
        provider = _provider(ctx)
        await provider.remove_cache(CacheDescriptor(cluster_name=name), timeout=timeout)

    _run(_remove())
    click.echo(f"🗑️  Cache cluster {name} removed")


# Managed database


@cli.group()
def database():
    """Manage database instances."""


@database.command("create")
@click.argument("name")
@click.option("--database-name", "-d", required=True, help="Initial database name")
@click.option(
    "--engine",
    type=click.Choice([engine.value for engine in DatabaseEngine]),
    default=DatabaseEngine.POSTGRES.value,
    show_default=True,
)
@click.option("--engine-version", help="Engine version, e.g. 15")
@click.option("--tier", type=TIER_CHOICES, default="dev", show_default=True)
@click.option("--retention-days", type=int, default=7, show_default=True)
@click.option("--storage-gb", type=int, default=20, show_default=True)
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def database_create(
    ctx,
    name,
    database_name,
    engine,
    engine_version,
    tier,
    retention_days,
    storage_gb,
    timeout,
):
    """Provision a database instance and print its coordinates."""

    async def _create():
        descriptor = DatabaseDescriptor(
            cluster_name=name,
            database_name=database_name,
            engine=DatabaseEngine(engine),
            engine_version=engine_version or "",
            tier=DeploymentTier(tier),
            retention_period_days=retention_days,
            storage_size_gb=storage_gb,
        )
        provider = _provider(ctx)
        return await provider.create_database(descriptor, timeout=timeout)

    coordinates = _run(_create())
    click.echo(str(coordinates))


@database.command("remove")
@click.argument("name")
@click.option("--timeout", type=float, help="Give up after this many seconds")
@click.pass_context
def database_remove(ctx, name, timeout):
    """Delete a database instance without a final snapshot."""

    async def _remove():
        # Only the identifier matters for removal
        descriptor = DatabaseDescriptor(cluster_name=name, database_name=name)
        provider = _provider(ctx)
        await provider.remove_database(descriptor, timeout=timeout)

    _run(_remove())
    click.echo(f"🗑️  Database instance {name} removed")


if __name__ == "__main__":
    cli()
