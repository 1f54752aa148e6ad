"""CLI entry point for https-relay."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, ENDPOINT_ENV, load_config
from core.exceptions import ConfigurationError
from ui.dashboard import Dashboard
from ui.log_utils import clear_logs, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    arg = sys.argv[1] if len(sys.argv) > 1 else None

    if arg == "--config":
        console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
        return

    if arg in ("--help", "-h"):
        _print_help()
        return

    # A missing or malformed upstream is fatal: never start serving
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        console.print(f"[dim]Edit {CONFIG_FILE} and set upstream.base_url, or export {ENDPOINT_ENV}[/dim]")
        sys.exit(1)

    if arg == "--check":
        target = config.upstream.target()
        console.print(f"[bold]Upstream:[/bold] {target.base_url}")
        console.print(f"[bold]Host header:[/bold] {target.host}")
        console.print(f"[bold]Listen:[/bold] {config.proxy.host}:{config.proxy.port}")
        return

    clear_logs()
    dashboard = Dashboard(config, live=config.proxy.dashboard)

    import uvicorn

    app = create_app(config, dashboard)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Relay started", port=config.proxy.port, upstream=config.upstream.base_url)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))
        dashboard.stop()


def _print_help():
    """Print help message."""
    help_text = f"""
[bold cyan]HTTPS Relay[/bold cyan]

Relays every request to one upstream API and adds security and CORS headers.

[bold]Usage:[/bold]
    https-relay              Start with live dashboard
    https-relay --check      Validate config and show the upstream
    https-relay --config     Show config location
    https-relay --help       Show this help

[bold]Configuration:[/bold]
    {CONFIG_FILE}
    {ENDPOINT_ENV} overrides upstream.base_url
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
