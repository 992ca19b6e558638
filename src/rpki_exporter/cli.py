"""CLI entrypoint for RPKI Exporter."""

import asyncio
import logging
import sys

import click
from aiohttp import web
from dotenv import load_dotenv

from rpki_exporter.config import ConfigError, ExporterConfig, Settings, load_config, load_settings
from rpki_exporter.metrics import RpkiMetrics
from rpki_exporter.scheduler import CollectionScheduler
from rpki_exporter.server import create_app
from rpki_exporter.sources.rpki_validator import RpkiValidatorClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(debug: bool) -> None:
    """Configure root logging to stderr with full timestamps."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


@click.group()
@click.version_option(package_name="rpki-exporter")
def cli():
    """RPKI Exporter - Prometheus metrics for RPKI route origin validation."""
    pass


@cli.command()
@click.option(
    "--web.listen-address",
    "listen_address",
    help="Address to listen on for HTTP requests (default: :9959)",
)
@click.option(
    "--web.metrics-path",
    "metrics_path",
    help="Path under which to expose metrics (default: /metrics)",
)
@click.option(
    "--config.file",
    "config_file",
    type=click.Path(dir_okay=False),
    help="Configuration file location (default: config.yaml)",
)
@click.option(
    "--validator-url",
    help="Base URL of the RPKI validity endpoint",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
def serve(
    listen_address: str | None,
    metrics_path: str | None,
    config_file: str | None,
    validator_url: str | None,
    debug: bool,
):
    """Collect RPKI status for configured targets and serve it over HTTP."""
    load_dotenv()

    try:
        settings = load_settings(
            listen_address=listen_address,
            metrics_path=metrics_path,
            config_file=config_file,
            validator_url=validator_url,
            debug=debug or None,
        )
        host, port = settings.listen_host_port()
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(settings.debug)

    try:
        config = load_config(settings.config_file)
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    try:
        asyncio.run(run_exporter(settings, config, host, port))
    except KeyboardInterrupt:
        click.echo("\nShutting down.")
    except OSError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@cli.command("check-config")
@click.option(
    "--config.file",
    "config_file",
    type=click.Path(dir_okay=False),
    help="Configuration file location (default: config.yaml)",
)
def check_config(config_file: str | None):
    """Validate a configuration file and list its targets."""
    load_dotenv()

    try:
        settings = load_settings(config_file=config_file)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    try:
        config = load_config(settings.config_file)
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(f"Refresh interval: {config.refresh_interval}s")
    for target in config.targets:
        click.echo(f"AS{target.asn}: {', '.join(target.prefixes)}")
    click.echo(click.style(f"OK: {config.prefix_count} prefixes", fg="green"))


async def run_exporter(settings: Settings, config: ExporterConfig, host: str | None, port: int) -> None:
    """Run the collection loop and the HTTP endpoint until cancelled.

    Args:
        settings: Process settings.
        config: Validated target configuration.
        host: Interface to bind, or None for all.
        port: TCP port to bind.
    """
    metrics = RpkiMetrics(track_vrp_detail=config.track_vrp_detail)

    async with RpkiValidatorClient(settings.validator_url) as client:
        scheduler = CollectionScheduler(config, client, metrics)
        runner = web.AppRunner(create_app(metrics, settings.metrics_path))
        await runner.setup()
        try:
            site = web.TCPSite(runner, host, port)
            await site.start()
            logger.info(
                "Listening on %s, metrics at %s",
                settings.listen_address,
                settings.metrics_path,
            )

            scheduler.start()
            await asyncio.Event().wait()
        finally:
            await scheduler.stop()
            await runner.cleanup()


def main():
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
