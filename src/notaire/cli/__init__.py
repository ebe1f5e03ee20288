"""
Notaire CLI.

Usage:
    notaire serve [--host HOST] [--port PORT]
    notaire listen
    notaire diagnose [--settle SECONDS]
    notaire contracts
"""

import asyncio
import json
import sys

import click

from notaire.config.settings import get_settings


@click.group()
def cli():
    """Notaire - Escrow Reconciliation Listener."""


@cli.command()
@click.option("--host", default=None, help="Bind host (default: settings)")
@click.option("--port", default=None, type=int, help="Bind port (default: settings)")
def serve(host, port):
    """Run the HTTP API with the listener."""
    import uvicorn

    from notaire.main import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


async def _listen() -> None:
    from notaire.di import Container

    container = Container(get_settings())
    shutdown = container.shutdown
    shutdown.install_signal_handlers()

    container.listener.start()
    container.reporter.info(
        "Listener running, waiting for SIGINT/SIGTERM", context="CLI"
    )
    await shutdown.wait_for_signal()


@cli.command()
def listen():
    """Run the listener without the HTTP API."""
    asyncio.run(_listen())


async def _diagnose(settle: float) -> dict:
    from notaire.cli.diagnose import run_diagnostics
    from notaire.di import Container

    container = Container(get_settings())
    listener = container.listener
    listener.start()
    try:
        return await run_diagnostics(listener, settle_seconds=settle)
    finally:
        await listener.close()


@cli.command()
@click.option("--settle", default=3.0, type=float, help="Seconds to wait after reconnect")
def diagnose(settle):
    """Check provider, events and listener state."""
    report = asyncio.run(_diagnose(settle))
    click.echo(json.dumps(report, indent=2))
    if not report.get("ok"):
        sys.exit(1)


@cli.command()
def contracts():
    """Show ABI availability per contract."""
    from notaire.infrastructure.blockchain import (
        are_contracts_available,
        contract_status,
    )

    artifacts_dir = get_settings().artifacts_dir
    click.echo(json.dumps(contract_status(artifacts_dir), indent=2))
    if not are_contracts_available(artifacts_dir):
        click.echo("Required contract ABIs missing", err=True)
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
