"""Doctor command: run `chezmoi doctor` and show the results as a table."""

import typer
from rich.table import Table
from rich.text import Text

from ..doctor import DoctorReport, severity
from ..runner import RunnerError
from .helpers import get_config, get_runner
from .output import console, error, muted, plain

SEVERITY_STYLE = {
    "ok": "green",
    "warning": "yellow",
    "error": "red",
    "info": "cyan",
}


def register(app: typer.Typer) -> None:
    """Register the doctor command with the app."""
    app.command()(doctor)


def doctor():
    """Run chezmoi's health checks.

    Exits with status 1 if any check reports an error.
    """
    runner = get_runner(get_config())
    try:
        report = DoctorReport.from_output(runner.run_diagnostics())
    except RunnerError as e:
        error(str(e))
        raise typer.Exit(1)

    if report.show_raw:
        plain(report.raw)
        return
    if not report.rows:
        muted("No output from chezmoi doctor.")
        return

    table = Table(show_lines=False, border_style="dim")
    table.add_column("Result")
    table.add_column("Check", style="bold")
    table.add_column("Message")
    for row in report.rows:
        style = SEVERITY_STYLE[severity(row.result)]
        table.add_row(
            Text(row.result, style=style),
            Text(row.check),
            Text(row.message),
        )
    console.print(table)

    counts = report.counts
    plain(
        f"{counts['ok']} ok, {counts['warning']} warning(s), "
        f"{counts['error']} error(s)"
    )
    if counts["error"]:
        raise typer.Exit(1)
