"""Line-oriented request logger for headless runs (containers, CI)."""

from datetime import datetime

from rich.console import Console
from rich.markup import escape

from ui.log_utils import write_cli_log

console = Console()


class ConsoleLogger:
    """Print one line per proxy event and mirror it to the CLI log file."""

    def __init__(self, out: Console | None = None) -> None:
        self._console = out or console

    def log_request(self, method: str, path: str, destination: str) -> None:
        self._print(f"[cyan]{method}[/cyan] {escape(path)} [dim]->[/dim] {escape(destination)}")
        write_cli_log("REQUEST", destination, method=method)

    def log_forward(self, destination: str, status: int) -> None:
        style = "green" if status < 400 else "yellow"
        self._print(f"[{style}]{status}[/{style}] {escape(destination)}")
        write_cli_log("FORWARD", destination, status=status)

    def log_error(self, destination: str, status: int, message: str) -> None:
        self._print(f"[red]{status}[/red] {escape(destination)}: {escape(message)}")
        write_cli_log("ERROR", message[:200], destination=destination, status=status)

    def _print(self, line: str) -> None:
        self._console.print(f"[dim]{datetime.now().strftime('%H:%M:%S')}[/dim] {line}")
