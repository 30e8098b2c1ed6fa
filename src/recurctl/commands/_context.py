"""AppContext: shared Click context for all commands.

The root group builds one per invocation and hands it to every command via
``@click.pass_obj``. Builds the storage and lifecycle service lazily and
centralizes result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from recurctl.output.formatters import OutputSettings, format_result
from recurctl.services.notifications import CollectingSink

if TYPE_CHECKING:
    from recurctl.config.settings import RecurSettings
    from recurctl.infrastructure.storage import VaultStorage
    from recurctl.services.lifecycle import LifecycleService
    from recurctl.services.result import ServiceResult


class AppContext:
    """Per-invocation state: settings, the notification sink, the service.

    The service is created on first use so ``--help`` and ``--version``
    never touch the vault.
    """

    def __init__(self, settings: RecurSettings) -> None:
        self.settings = settings
        self.sink = CollectingSink()
        self._storage: VaultStorage | None = None
        self._service: LifecycleService | None = None

        from recurctl.config.logging import configure_logging
        from recurctl.config.settings import validate_settings

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        validate_settings(settings)

        if settings.verbose:
            from recurctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def storage(self) -> VaultStorage:
        if self._storage is None:
            from recurctl.infrastructure.storage import VaultStorage

            self._storage = VaultStorage(self.settings.vault_root)
        return self._storage

    @property
    def service(self) -> LifecycleService:
        """The lifecycle service (created lazily on first access)."""
        if self._service is None:
            from recurctl.services.lifecycle import LifecycleService

            self._service = LifecycleService(self.storage, self.settings, sink=self.sink)
        return self._service

    def vault_path(self, path: str) -> str:
        """Accept a vault-relative path or a filesystem path inside the vault."""
        candidate = Path(path)
        if candidate.is_absolute() or candidate.exists():
            try:
                return self.storage.relative(candidate)
            except ValueError as exc:
                msg = f"{path} is outside the vault at {self.settings.vault_root}"
                raise click.BadParameter(msg) from exc
        return path

    def output_settings(self) -> OutputSettings:
        return OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )

    def emit(self, result: ServiceResult) -> None:
        """Print *result* and the notifications collected while producing it.

        * Success: writes to stdout, returns normally. Warnings go to stderr
          so they don't pollute piped output.
        * Failure: everything to stderr, then exit status 1.
        """
        settings = self.output_settings()
        output = format_result(result, settings=settings, notifications=self.sink.drain())
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
