"""AppContext: shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Builds the store service lazily and owns result
emission (stdout/stderr routing and exit codes).
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any

import click

from flatstore.config.logging import configure_logging
from flatstore.output.formatters import OutputSettings, format_result
from flatstore.services.result import ServiceResult

if TYPE_CHECKING:
    from flatstore.config.settings import FlatstoreSettings
    from flatstore.services.store import StoreService


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The service is created on first use so ``--help`` and ``--examples``
    never touch the snapshot file.
    """

    def __init__(self, settings: FlatstoreSettings) -> None:
        self.settings = settings
        self._service: StoreService | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def service(self) -> StoreService:
        if self._service is None:
            from flatstore.services.store import StoreService

            self._service = StoreService(self.settings)
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: stdout, warnings on stderr (outside JSON mode).
        * Failure: stderr, exit code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def read_json(self, source: str, *, op: str) -> Any:
        """Parse JSON from a file path, or stdin when *source* is ``-``.

        Emits a failed result (exit 1) when the input is unreadable.
        """
        try:
            if source == "-":
                return json.loads(sys.stdin.read())
            with open(source, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            self.emit(ServiceResult.failure(op, "INVALID_INPUT", f"Error reading {source}: {exc}"))
            raise  # unreachable: emit() exits
