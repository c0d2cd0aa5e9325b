#!filepath: flint/cli.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich import print
from rich.markup import escape
from rich.console import Console

from flint import __version__
from flint.config.app_config import AppConfig
from flint.config.server_config import ServerConfig
from flint.utils.errors import ConnectionLost, UserInputError
from flint.utils.logger import init_logging, logs

app = typer.Typer(help="Flint: tick-synchronised test runner for a live game server")


@app.command()
def version():
    print(f"flint v{__version__}")


@app.command()
def run(
    target: Path = typer.Argument(..., help="Test file or directory of *.json tests"),
    server: Optional[str] = typer.Option(None, "--server", "-s", help="host:port of the server"),
    client: Optional[str] = typer.Option(None, "--client", help="'local' or module:Class"),
    recursive: Optional[bool] = typer.Option(None, "--recursive/--no-recursive", help="Descend into sub-directories"),
    parallel: Optional[bool] = typer.Option(None, "--parallel/--sequential", help="Merge tests into offset waves"),
    break_before: Optional[bool] = typer.Option(None, "--break-before/--no-break-before", help="Pause before tick 0"),
    chat_control: Optional[bool] = typer.Option(None, "--chat-control/--no-chat-control", help="Accept s/c in chat"),
    sync_timeout: Optional[float] = typer.Option(None, "--sync-timeout", help="Seconds to wait for a tick step"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
):
    """
    Run one test file or a directory of tests against the server.
    """
    try:
        cfg = AppConfig.load(str(config) if config else None)
    except FileNotFoundError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    cfg = cfg.override("server", address=server, client=client)
    cfg = cfg.override("run", target=str(target), recursive=recursive, parallel=parallel, sync_timeout=sync_timeout)
    cfg = cfg.override("control", break_before_test=break_before, chat_control=chat_control)

    init_logging(cfg.log)

    try:
        code = execute(cfg)
    except UserInputError as e:
        print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=2)

    raise typer.Exit(code=code)


def execute(cfg: AppConfig, console: Optional[Console] = None) -> int:
    """
    load -> connect -> run -> report. Returns the process exit code.
    """
    from flint.client.factory import create_client
    from flint.observability.instrumentation import Instrumentation
    from flint.runner.report import RunReport, render_report
    from flint.runner.runner import TestRunner
    from flint.spec.loader import load_tests

    loaded = load_tests(cfg.run.target, recursive=cfg.run.recursive)
    if not loaded.tests and not loaded.errors:
        raise UserInputError(f"no tests found in {cfg.run.target}")
    if not loaded.tests:
        render_report(_skipped_only(loaded.errors), console)
        return 2

    if cfg.server.client == "local" and cfg.server.address != ServerConfig.model_fields["address"].default:
        logs.warning(
            f"[Client] --client local ignores {cfg.server.address}: tests run against the in-memory simulation"
        )

    try:
        bot = create_client(cfg.server)
    except ConnectionLost as e:
        logs.error(f"[Client] {e}")
        report = RunReport(aborted=str(e))
        render_report(report, console)
        return 1

    try:
        runner = TestRunner(bot, cfg.run, cfg.control, inst=Instrumentation(enabled=True))
        report = runner.run(loaded.tests, loaded.errors, run_name=str(cfg.run.target))
    finally:
        bot.disconnect()

    render_report(report, console)
    return report.exit_code


def _skipped_only(errors):
    from flint.runner.report import RunReport, TestResult

    report = RunReport()
    for err in errors:
        report.add(TestResult.skipped(err.test or Path(err.path).stem, str(err)))
    return report


if __name__ == "__main__":
    app()

# python -m flint run tests/fixtures/basic.json --client local
