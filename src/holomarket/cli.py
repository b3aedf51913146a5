"""HoloMarket CLI."""

import asyncio
import json
import sys

import click

from holomarket.app import HoloMarketApp, setup_logging
from holomarket.config_loader import load_config
from holomarket.constants import MarketImpact
from holomarket.service import MarketService
from holomarket.store.seed import load_seed_file, seed_store


@click.group()
def cli():
    """HoloMarket Command Line Interface."""
    pass


config_option = click.option(
    "--config",
    type=click.Path(exists=True),
    default="config/config.yaml",
    help="Path to configuration file",
)


@cli.command()
@config_option
@click.option("--interval", type=float, help="Override simulation tick interval (seconds)")
@click.option("--store", type=click.Choice(["sqlite", "memory"]), help="Override store backend")
@click.option("--seed", type=click.Path(exists=True), help="Seed corporations before starting")
def run(config, interval, store, seed):
    """Start the market server."""
    try:
        app = HoloMarketApp(
            config_path=config, interval_seconds=interval, store_backend=store, seed_path=seed
        )
        asyncio.run(app.run())
    except KeyboardInterrupt:
        pass
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        import traceback

        traceback.print_exc()
        sys.exit(1)


@cli.command()
@config_option
def smoke_test(config):
    """Initialize components and exit."""

    async def _smoke():
        app = HoloMarketApp(config_path=config)
        service = await app.initialize()
        await service.store.close()

    try:
        asyncio.run(_smoke())
        click.echo("Smoke test passed: Components initialized successfully.")
    except Exception as e:
        click.echo(f"Smoke test failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@config_option
@click.argument("seed_file", type=click.Path(exists=True))
def seed(config, seed_file):
    """Load corporations from a YAML seed file into the store."""
    cfg = load_config(config)
    setup_logging(cfg.environment.log_level.value)

    async def _seed():
        service = MarketService(cfg)
        await service.initialize()
        try:
            return await seed_store(service.store, load_seed_file(seed_file))
        finally:
            await service.store.close()

    stored = asyncio.run(_seed())
    for instrument in stored:
        click.echo(f"  {instrument.symbol:<6} {instrument.name:<32} {instrument.price:>10}")
    click.echo(f"Seeded {len(stored)} corporations.")


@cli.command()
@config_option
def summary(config):
    """Print the current market summary as JSON."""
    cfg = load_config(config)

    async def _summary():
        service = MarketService(cfg)
        await service.initialize()
        try:
            return await service.summary()
        finally:
            await service.store.close()

    click.echo(json.dumps(asyncio.run(_summary()).to_dict(), indent=2))


@cli.command()
@config_option
@click.option("--title", default="Manual market event", help="Event headline")
@click.option(
    "--impact",
    type=click.Choice([i.value for i in MarketImpact]),
    default=MarketImpact.MIXED.value,
    help="Direction of the shock",
)
@click.argument("symbols", nargs=-1, required=True)
def shock(config, title, impact, symbols):
    """Apply a one-off market shock to SYMBOLS and print the resulting batch."""
    cfg = load_config(config)
    setup_logging(cfg.environment.log_level.value)

    async def _shock():
        service = MarketService(cfg)
        await service.initialize()
        try:
            return await service.trigger_news_event(title, symbols, impact)
        finally:
            await service.store.close()

    batch = asyncio.run(_shock())
    if batch is None:
        click.echo("Market event failed, see log for details.", err=True)
        sys.exit(1)
    click.echo(batch.to_json())


main = cli

if __name__ == "__main__":
    cli()
