"""Command line entry point."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import replace
from pathlib import Path

import click

from . import __version__
from .config import Settings, load_settings, resolve_config_path
from .leds import LedControlError, open_led_control
from .logs import configure_logging, log_event
from .service import BayLedService, RunOptions
from .shutdown import ShutdownSignal
from .udev import UdevError, UdevService


def _log_level(verbose: int, debug: bool) -> int | None:
    if debug or verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return None


def _load(config_path: Path | None) -> Settings:
    resolved = resolve_config_path(config_path)
    if resolved is None:
        log_event("config.defaults")
        return Settings()
    settings = load_settings(resolved)
    log_event("config.loaded", path=str(resolved), driver=settings.leds.driver)
    return settings


async def _serve(service: BayLedService, shutdown: ShutdownSignal) -> None:
    loop = asyncio.get_running_loop()
    shutdown.install(loop)
    try:
        await service.run()
    finally:
        shutdown.uninstall(loop)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="bayledd")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file.",
)
@click.option("--brightness", type=click.IntRange(1, 10), help="Set LED brightness (1 to 10).")
@click.option("--debug", is_flag=True, help="Print debug messages.")
@click.option("-v", "--verbose", count=True, help="Verbose output (use twice to be more verbose).")
@click.option("--light-show", type=click.IntRange(min=1), help="Run a light show instead of monitoring.")
@click.option("--usb", type=click.IntRange(0, 1), help="Mount (1) or unmount (0) the USB device.")
@click.option("--xmas", is_flag=True, help="Light all the LEDs up like a xmas tree and exit.")
@click.option("--dry-run", is_flag=True, help="Log LED transitions instead of driving hardware.")
def main(
    config_path: Path | None,
    brightness: int | None,
    debug: bool,
    verbose: int,
    light_show: int | None,
    usb: int | None,
    xmas: bool,
    dry_run: bool,
) -> None:
    """Light drive-bay LEDs as drives come and go."""

    configure_logging(_log_level(verbose, debug))
    try:
        settings = _load(config_path)
        led_settings = replace(settings.leds, driver="console") if dry_run else settings.leds
        leds = open_led_control(led_settings)
        shutdown = ShutdownSignal()
        service = BayLedService(
            settings=settings,
            leds=leds,
            udev=UdevService(),
            shutdown=shutdown,
            options=RunOptions(
                brightness=brightness,
                light_show=light_show or 0,
                mount_usb=None if usb is None else bool(usb),
                xmas=xmas,
            ),
            announce=click.echo,
        )
        asyncio.run(_serve(service, shutdown))
    except (UdevError, LedControlError, ValueError, OSError) as exc:
        click.echo(str(exc), err=True)
        if os.geteuid() != 0:
            click.echo("Try running as root")
        raise SystemExit(1) from exc
    click.echo("Exiting on signal" if shutdown.is_set() else "Done")
