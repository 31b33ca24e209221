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


def _status_style(status: int) -> str:
    if status >= 500:
        return "red"
    if status >= 400:
        return "yellow"
    return "green"


class RequestInfo:
    """Info about a single relayed request."""

    def __init__(self, method: str, path: str, status: int, elapsed: float, timestamp: datetime):
        self.method = method
        self.path = path[:60] + "..." if len(path) > 60 else path
        self.status = status
        self.elapsed_ms = int(elapsed * 1000)
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing relayed requests and errors."""

    def __init__(self, config: Config):
        self.config = config
        self._lock = Lock()
        self._requests: list[RequestInfo] = []
        self._max_requests = 10
        self._status_count = {"2xx": 0, "4xx": 0, "5xx": 0}
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

    def log_request(self, method: str, path: str, status: int, elapsed: float) -> None:
        """Log a request whose response status was sent."""
        with self._lock:
            bucket = f"{min(status // 100, 5)}xx"
            if bucket in self._status_count:
                self._status_count[bucket] += 1
            self._requests.insert(0, RequestInfo(method, path, status, elapsed, datetime.now()))
            self._requests = self._requests[: self._max_requests]
            self._refresh()
            write_cli_log("REQUEST", f"{method} {path}", status=status, elapsed=f"{elapsed:.3f}s")

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log an error."""
        with self._lock:
            truncated = message[:50] + "..." if len(message) > 50 else message
            self._errors.insert(0, f"{route} {status}: {truncated}")
            self._errors = self._errors[:3]
            self._refresh()
            write_cli_log("ERROR", message[:200], route=route, status=status)

    def log_warning(self, message: str) -> None:
        """Log a non-fatal problem."""
        write_cli_log("WARN", message[:200])

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
        scheme = "https" if self.config.proxy.tls_enabled else "http"
        stats = Text()
        stats.append("OpenAI Key Proxy", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"2xx: {self._status_count['2xx']}", style="green")
        stats.append("  |  ")
        stats.append(f"4xx: {self._status_count['4xx']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"5xx: {self._status_count['5xx']}", style="red")
        stats.append("  |  ")
        stats.append(f"{scheme}://{self.config.proxy.host}:{self.config.proxy.port}", style="dim")

        return Panel(stats, style="cyan")

    def _build_requests_panel(self) -> Panel:
        """Build recent requests panel."""
        if self._requests:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Method", width=7)
            table.add_column("Path", ratio=3)
            table.add_column("Status", width=6)
            table.add_column("Time to headers", width=15, justify="right")

            for info in self._requests:
                table.add_row(
                    info.timestamp.strftime("%H:%M:%S"),
                    info.method,
                    info.path,
                    Text(str(info.status), style=_status_style(info.status)),
                    f"{info.elapsed_ms} ms",
                )

            content = table
        else:
            content = Text("Waiting for requests...", style="dim")

        return Panel(content, title="[blue]Requests[/blue]", border_style="blue")

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
                f"Set OPENAI_BASE_URL=http://localhost:{self.config.proxy.port}/v1 to use",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")


class ConsoleLogger:
    """Line-by-line logger for headless runs."""

    def log_request(self, method: str, path: str, status: int, elapsed: float) -> None:
        console.print(
            f"[dim]{datetime.now():%H:%M:%S}[/dim] {method} {escape(path)} "
            f"[{_status_style(status)}]{status}[/] [dim]{elapsed * 1000:.0f} ms[/dim]",
            highlight=False,
        )
        write_cli_log("REQUEST", f"{method} {path}", status=status, elapsed=f"{elapsed:.3f}s")

    def log_error(self, route: str, status: int, message: str) -> None:
        console.print(f"[red][ERROR][/red] {escape(route)} {status}: {escape(message)}", highlight=False)
        write_cli_log("ERROR", message[:200], route=route, status=status)

    def log_warning(self, message: str) -> None:
        console.print(f"[yellow][WARN][/yellow] {escape(message)}", highlight=False)
        write_cli_log("WARN", message[:200])
