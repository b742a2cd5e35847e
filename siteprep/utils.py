"""Shared utility functions for siteprep.

Provides command execution, octal mode formatting and the Rich-based console
helpers used by the CLI.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable, Sequence

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


def run_command(
    cmd: Sequence[str],
    cwd: str | os.PathLike[str] | None = None,
    timeout: int = 30,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple. A missing executable is
        reported as return code 127, a timeout as -1.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        completed = subprocess.run(
            list(cmd),
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        return (127, "", f"Command not found: {cmd[0]}")
    except subprocess.TimeoutExpired:
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    return (completed.returncode, completed.stdout.strip(), completed.stderr.strip())


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_mode(mode: int | None) -> str:
    """Format permission bits the way ``chmod`` takes them.

    Examples::

        format_mode(0o640) -> "0640"
        format_mode(None)  -> "-"
    """
    if mode is None:
        return "-"
    return f"{mode:04o}"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

# Keyed by ``StepStatus`` value.
STATUS_STYLES: dict[str, str] = {
    "created": "green",
    "updated": "cyan",
    "skipped": "dim",
    "failed": "bold red",
}


def print_header(title: str, color: str = "bright_green") -> None:
    """Print a full-width rule announcing a hook."""
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))
    console.print()


def styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status)
    return f"[{style}]{status}[/{style}]" if style else escape(status)


def print_steps_table(rows: Iterable[tuple[str, str, int | None, str, str]], title: str = "Scaffold") -> None:
    """Print one row per scaffold step: step, path, mode, status, detail.

    Paths and details are printed literally; only the status is coloured.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Step", style="dim", no_wrap=True)
    table.add_column("Path")
    table.add_column("Mode", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Detail")

    for step, path, mode, status, detail in rows:
        table.add_row(escape(step), escape(path), format_mode(mode), styled_status(status), escape(detail))

    console.print(table)


def print_summary_table(counts: dict[str, str], title: str = "Totals") -> None:
    """Print per-status counts, skipping statuses that never occurred."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Status", no_wrap=True)
    table.add_column("Count", justify="right")

    for status, count in counts.items():
        if count != "0":
            table.add_row(styled_status(status), count)

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print *message* in red on stderr; brackets in it are not markup."""
    err_console.print(f"[bold red]{escape(message)}[/bold red]")
