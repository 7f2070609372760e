"""Real-time CLI dashboard for proxy monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log

console = Console()


class ForwardInfo:
    """Info about a single forwarded request."""

    def __init__(self, method: str, destination: str, timestamp: datetime):
        self.method = method
        self.destination = destination
        self.status: int | None = None
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent forwards and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._forwards: list[ForwardInfo] = []
        self._max_forwards = 10
        self._counts = {"requests": 0, "forwarded": 0, "failed": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    def log_request(self, method: str, path: str, destination: str) -> None:
        """Record an inbound request."""
        with self._lock:
            self._counts["requests"] += 1
            self._forwards.insert(0, ForwardInfo(method, destination, datetime.now()))
            self._forwards = self._forwards[: self._max_forwards]
            self._refresh()
            write_cli_log("REQUEST", destination, method=method)

    def log_forward(self, destination: str, status: int) -> None:
        """Record the destination status of a forwarded request."""
        with self._lock:
            self._counts["forwarded"] += 1
            self._set_status(destination, status)
            self._refresh()
            write_cli_log("FORWARD", destination, status=status)

    def log_error(self, destination: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._counts["failed"] += 1
            self._set_status(destination, status)
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{status} {destination}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], destination=destination, status=status)

    def _set_status(self, destination: str, status: int) -> None:
        """Attach status to the newest pending entry for destination."""
        for info in self._forwards:
            if info.destination == destination and info.status is None:
                info.status = status
                return

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_forwards_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("Identity Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Requests: {self._counts['requests']}", style="blue")
        stats.append("  |  ")
        stats.append(f"Forwarded: {self._counts['forwarded']}", style="green")
        stats.append("  |  ")
        stats.append(f"Failed: {self._counts['failed']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_forwards_panel(self) -> Panel:
        """Build recent forwards panel."""
        if self._forwards:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=8)
            table.add_column("Status", width=6)
            table.add_column("Destination", ratio=1)

            for info in self._forwards:
                if info.status is None:
                    status = "[dim]...[/dim]"
                elif info.status < 400:
                    status = f"[green]{info.status}[/green]"
                else:
                    status = f"[red]{info.status}[/red]"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    status,
                    escape(info.destination),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Forwards[/blue]", border_style="blue")

    def _build_footer(self) -> Panel:
        """Build footer with errors and help."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            content = Text(
                f"Send requests to http://localhost:{self.config.proxy.port}/<host>/<path>",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
