from __future__ import annotations

import logging
import threading
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from buttonoff.config import Settings, format_duration
from buttonoff.core import (
    ButtonEventHandler,
    MQTTPublisher,
    PcapListener,
    install_signal_handlers,
    run_all,
)
from buttonoff.errors import ButtonoffError
from buttonoff.utils.logging import setup_logging

from .common import load_run_settings_or_exit

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> tuple[PcapListener, MQTTPublisher]:
    """Connect the publisher, then wire handler and listener to it.

    The publisher is closed again if a later component cannot be built.
    """
    publisher = MQTTPublisher(
        settings.mqtt, logger=logging.getLogger("buttonoff.publisher")
    )
    publisher.connect()

    try:
        handler = ButtonEventHandler(
            settings.general,
            settings.buttons,
            publisher,
            logger=logging.getLogger("buttonoff.handler"),
        )
        listener = PcapListener(
            settings.listener.interface,
            handler,
            logger=logging.getLogger("buttonoff.listener"),
        )
    except ButtonoffError:
        publisher.close()
        raise
    return listener, publisher


def register(app: typer.Typer) -> None:
    @app.command()
    def run(
        config: Annotated[
            str | None,
            typer.Option("--config", "-c", help="Configuration file"),
        ] = None,
        interface: Annotated[
            str | None,
            typer.Option("--interface", "-i", help="Interface name to listen on"),
        ] = None,
        broker: Annotated[
            str | None,
            typer.Option(
                "--broker",
                "-b",
                help='MQTT broker to publish to (ex: "tcp://127.0.0.1:1883")',
            ),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", "-l", help="Log level to write out at"),
        ] = None,
    ) -> None:
        """Listen for button presses and publish them to the broker."""
        if log_level:
            setup_logging(log_level)

        console = Console()

        settings = load_run_settings_or_exit(config, interface, broker)
        console.print("[bold]buttonoff[/bold]")
        console.print(f"Interface: {escape(settings.listener.interface)}")
        console.print(f"Broker: {escape(settings.mqtt.broker_addr)}")
        console.print(f"Configured buttons: {len(settings.buttons)}")
        console.print(
            f"Debounce period: {format_duration(settings.general.debounce_period)}"
        )

        try:
            listener, publisher = build_pipeline(settings)
        except ButtonoffError as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(1) from exc

        stop = threading.Event()
        install_signal_handlers(stop)
        run_all(stop, listener, publisher)
        logger.info("Stopped")
