"""Command: watch the vault and process tasks as they are completed."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import click

from recurctl.commands._base import RecurCommand

if TYPE_CHECKING:
    from recurctl.commands._context import AppContext

logger = logging.getLogger(__name__)


@click.command(
    cls=RecurCommand,
    examples="""\
  recurctl watch
  recurctl --log-json watch --debounce 2.5""",
)
@click.option(
    "--debounce",
    "debounce_seconds",
    type=float,
    default=None,
    help="Seconds to wait after the last change before processing. Defaults to config.",
)
@click.pass_obj
def watch(app: AppContext, debounce_seconds: float | None) -> None:
    """Process completed recurring tasks whenever a file in the vault changes."""
    from watchdog.observers import Observer

    from recurctl.config.logging import configure_logging
    from recurctl.infrastructure.locks import LockRegistry, LockSweeper
    from recurctl.infrastructure.storage import VaultStorage
    from recurctl.infrastructure.watcher import Debouncer, VaultEventHandler
    from recurctl.services.lifecycle import LifecycleService
    from recurctl.services.notifications import LoggingSink

    settings = app.settings
    configure_logging(
        verbose=settings.verbose,
        log_json=settings.log_json,
        level=logging.DEBUG if settings.verbose else logging.INFO,
    )

    locks = LockRegistry()
    service = LifecycleService(
        VaultStorage(settings.vault_root),
        settings,
        sink=LoggingSink(),
        locks=locks,
    )
    delay = settings.recur.debounce_seconds if debounce_seconds is None else debounce_seconds
    debouncer = Debouncer(delay)
    sweeper = LockSweeper(locks, interval=settings.recur.sweep_interval_seconds)
    handler = VaultEventHandler(
        settings.vault_root,
        debouncer,
        service.handle_change,
        archive_folder=settings.archive.folder,
    )

    observer = Observer()
    observer.schedule(handler, str(settings.vault_root), recursive=True)
    observer.start()
    sweeper.start()
    logger.info("Watching %s (debounce %.1fs)", settings.vault_root, delay)
    if not settings.quiet:
        click.echo(f"Watching {settings.vault_root}. Press Ctrl+C to stop.", err=True)

    try:
        while observer.is_alive():
            observer.join(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        observer.stop()
        observer.join()
        debouncer.cancel_all()
        sweeper.stop()
        locks.clear()
        logger.info("Watcher stopped")
