"""
SecureShred CLI
===============

Command-line front end for the shredding engine.

    secureshred secret.txt
    secureshred -p 7 --pattern random -y ./old-keys/
    secureshred --json --audit-log ~/shred-audit.jsonl build/

Exit codes:
    0  every target was destroyed
    1  some entries could not be destroyed, or a target was declined
    2  a target was missing, unsupported or refused
"""

from __future__ import annotations

import json
import signal
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import click

from secureshred import __version__
from secureshred.core.config import ShredderConfig
from secureshred.core.logging import configure_logging
from secureshred.core.shred import (
    PassFailurePolicy,
    Pattern,
    ShredEngine,
    ShredError,
    ShredOutcome,
)
from secureshred.security.audit import ShredAuditLog
from secureshred.utils.paths import EntryKind, classify_path
from secureshred.utils.validators import ValidationError, validate_shred_target

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_FATAL = 2


def _confirm_target(path: Path) -> bool:
    if classify_path(path) is EntryKind.DIRECTORY:
        prompt = f"Recursively and securely delete directory '{path}'?"
    else:
        prompt = f"Securely delete '{path}'?"
    return click.confirm(prompt, default=False, err=True)


def _echo_progress(path: Path, pass_number: int, passes: int, bytes_written: int) -> None:
    click.echo(
        f"  {path.name}: pass {pass_number}/{passes} completed ({bytes_written:,} bytes)",
        err=True,
    )


def _render_outcome(outcome: ShredOutcome) -> None:
    if outcome.ok:
        click.echo(
            f"✓ Removed {outcome.path} "
            f"({outcome.succeeded_count} entries, {outcome.bytes_overwritten:,} bytes overwritten)"
        )
        return

    click.echo(
        f"✗ {outcome.path}: {outcome.failed_count} entries could not be destroyed",
        err=True,
    )
    for failure in outcome.failures():
        reason = failure.reason.value if failure.reason else "unknown"
        detail = f" ({failure.message})" if failure.message else ""
        click.echo(f"    {failure.path}: {reason}{detail}", err=True)


class _StopOnInterrupt:
    """Route SIGINT to ``engine.request_stop`` while shredding."""

    def __init__(self, engine: ShredEngine) -> None:
        self._engine = engine
        self._previous: Any = None

    def _handler(self, signum: int, frame: Any) -> None:
        if self._engine.stop_requested:
            raise KeyboardInterrupt
        click.echo("\nStopping after the current file (press Ctrl+C again to abort)", err=True)
        self._engine.request_stop()

    def __enter__(self) -> _StopOnInterrupt:
        try:
            self._previous = signal.signal(signal.SIGINT, self._handler)
        except (ValueError, OSError):
            self._previous = None  # Not in the main thread
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._previous is not None:
            signal.signal(signal.SIGINT, self._previous)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "-V", "--version")
@click.argument("paths", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "-p", "--passes",
    type=click.IntRange(min=1),
    default=None,
    help="Number of overwrite passes [default: 3]",
)
@click.option(
    "--pattern",
    type=click.Choice([p.value for p in Pattern], case_sensitive=False),
    default=None,
    help="Fill pattern for every pass [default: random]",
)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")
@click.option(
    "--keep-going-on-pass-failure",
    is_flag=True,
    help="Write the remaining passes even after one fails",
)
@click.option(
    "--audit-log",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Append a hash-chained record of destroyed entries",
)
@click.option("--json", "json_output", is_flag=True, help="Output results as JSON")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option("-q", "--quiet", is_flag=True, help="Do not print per-pass progress")
@click.pass_context
def main(
    ctx: click.Context,
    paths: tuple[Path, ...],
    passes: Optional[int],
    pattern: Optional[str],
    yes: bool,
    keep_going_on_pass_failure: bool,
    audit_log: Optional[Path],
    json_output: bool,
    log_level: Optional[str],
    quiet: bool,
) -> None:
    """
    Securely delete files and directories.

    Every file is overwritten PASSES times, flushed to disk after each
    pass, renamed to a random name and unlinked. Directories are
    processed recursively; symbolic links are removed without touching
    their targets.
    """
    try:
        settings = ShredderConfig.load()
    except ValueError as e:
        raise click.UsageError(f"Invalid configuration: {e}") from e

    logging_config = settings.logging
    if log_level:
        logging_config = replace(logging_config, level=log_level.upper())
    if logging_config.enable_file:
        settings.ensure_directories()
    configure_logging(logging_config, settings.paths.log_dir)

    config = settings.defaults
    if passes is not None:
        config = replace(config, passes=passes)
    if pattern is not None:
        config = replace(config, pattern=Pattern.from_name(pattern))
    if keep_going_on_pass_failure:
        config = replace(config, on_pass_failure=PassFailurePolicy.CONTINUE)

    progress = None if (quiet or json_output) else _echo_progress
    engine = ShredEngine(config.with_confirmation(), progress=progress)
    audit = ShredAuditLog(audit_log) if audit_log else None

    outcomes: list[ShredOutcome] = []
    errors: list[dict[str, str]] = []
    declined = False

    with _StopOnInterrupt(engine):
        for raw_path in paths:
            if engine.stop_requested:
                break

            try:
                target = validate_shred_target(raw_path)
            except ValidationError as e:
                errors.append({"path": str(raw_path), "error": str(e)})
                if not json_output:
                    click.echo(f"✗ {e}", err=True)
                continue

            if not yes and not _confirm_target(target):
                declined = True
                if not json_output:
                    click.echo(f"Skipping {target}", err=True)
                continue

            if audit:
                audit.record_start(target, engine.config)

            try:
                outcome = engine.shred(target)
            except ShredError as e:
                if audit:
                    audit.record_error(target, e)
                errors.append({"path": str(target), "error": str(e)})
                if not json_output:
                    click.echo(f"✗ {e}", err=True)
                continue

            if audit:
                audit.record_outcome(outcome)

            outcomes.append(outcome)
            if not json_output:
                _render_outcome(outcome)

    failed = any(not outcome.ok for outcome in outcomes)

    if json_output:
        click.echo(json.dumps({
            "status": "ok" if not (errors or failed or declined) else "error",
            "passes": config.passes,
            "pattern": config.pattern.value,
            "results": [outcome.to_dict() for outcome in outcomes],
            "errors": errors,
        }, indent=2))

    if errors:
        ctx.exit(EXIT_FATAL)
    if failed or declined or engine.stop_requested:
        ctx.exit(EXIT_PARTIAL)
    ctx.exit(EXIT_OK)


if __name__ == "__main__":
    main()
