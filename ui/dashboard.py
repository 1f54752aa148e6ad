"""Real-time CLI dashboard for relay monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_incoming_log

console = Console()


class RequestInfo:
    """Info about a single completed request."""

    def __init__(self, method: str, path: str, status: int, elapsed: float, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = int(elapsed * 1000)
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing relayed requests and errors."""

    def __init__(self, config: Config, live: bool = True):
        self.config = config
        self._use_live = live
        self._lock = Lock()
        self._recent: list[RequestInfo] = []
        self._max_recent = 10
        self._request_count = {"relayed": 0, "preflight": 0, "errors": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    @property
    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._request_count)

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        if not self._use_live:
            console.print(
                f"[bold cyan]HTTPS Relay[/bold cyan] -> {self.config.upstream.base_url} "
                f"on {self.config.proxy.host}:{self.config.proxy.port}"
            )
            return self
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

    def log_relay(
        self, method: str, url: str, headers: list[tuple[bytes, bytes]], *, path: str
    ) -> None:
        """Log a request about to be sent upstream."""
        with self._lock:
            self._request_count["relayed"] += 1
            if self.config.logging.request_logs:
                write_incoming_log(method, url, headers, path=path)
            write_cli_log("RELAY", f"{method} {url}")
            self._refresh()

    def log_preflight(self, path: str) -> None:
        """Log a preflight answered locally."""
        with self._lock:
            self._request_count["preflight"] += 1
            self._recent.insert(0, RequestInfo("OPTIONS", path, 204, 0.0, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()

    def log_response(self, method: str, path: str, status: int, elapsed: float) -> None:
        """Log a completed relay."""
        with self._lock:
            self._recent.insert(0, RequestInfo(method, path, status, elapsed, datetime.now()))
            self._recent = self._recent[: self._max_recent]
            self._refresh()

    def log_error(self, kind: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            self._request_count["errors"] += 1
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{kind} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], kind=kind, status=status)

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
        layout["body"].update(self._build_requests_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("HTTPS Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Upstream: {self.config.upstream.base_url}", style="blue")
        stats.append("  |  ")
        stats.append(f"Relayed: {self._request_count['relayed']}", style="green")
        stats.append("  |  ")
        stats.append(f"Preflight: {self._request_count['preflight']}", style="magenta")
        stats.append("  |  ")
        stats.append(f"Errors: {self._request_count['errors']}", style="red")
        stats.append("  |  ")
        stats.append(f"Port: {self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=8)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("ms", width=7, justify="right")

            for info in self._recent:
                style = "red" if info.status >= 500 else "yellow" if info.status >= 400 else "green"
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.path,
                    f"[{style}]{info.status}[/{style}]",
                    str(info.elapsed_ms),
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Recent Requests[/blue]", border_style="blue")

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
                f"Send requests to http://{self.config.proxy.host}:{self.config.proxy.port}",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
