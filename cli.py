"""CLI entry point for identity-proxy."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from auth import check_credentials
from core.config import CONFIG_FILE, load_config
from ui.console import ConsoleLogger
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    config = load_config()
    use_dashboard = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            if len(sys.argv) < 3:
                console.print("[red][ERROR][/red] --check needs an audience URL")
                sys.exit(2)
            sys.exit(0 if check_credentials(sys.argv[2]) else 1)

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        if arg == "--dashboard":
            use_dashboard = True

    import uvicorn

    dashboard = Dashboard(config) if use_dashboard else None
    logger = dashboard or ConsoleLogger()
    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.proxy.keep_alive_timeout,
        # In-flight requests get this long after SIGINT/SIGTERM
        timeout_graceful_shutdown=config.proxy.shutdown_grace_period,
    )
    server = uvicorn.Server(uvicorn_config)

    if dashboard:
        dashboard.start()
    else:
        console.print(f"Listening on port: {config.proxy.port}")
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", port=config.proxy.port)
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        if dashboard:
            dashboard.stop()

    if not server.started:
        console.print(f"[red][ERROR][/red] server failed to start on {config.proxy.host}:{config.proxy.port}")
        sys.exit(1)
    console.print("[dim]server stopped[/dim]")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Identity Proxy[/bold cyan]

Forwards /<host>/<path> to https://<host>/<path> with a Google-signed
ID token for that URL attached as the Authorization header.

[bold]Usage:[/bold]
    identity-proxy                    Start, logging one line per request
    identity-proxy --dashboard        Start with live dashboard
    identity-proxy --check AUDIENCE   Check an ID token can be minted for AUDIENCE
    identity-proxy --config           Show config and log locations
    identity-proxy --help             Show this help

[bold]Authentication:[/bold]
    Uses Application Default Credentials (metadata server on Cloud Run/GKE/GCE,
    or GOOGLE_APPLICATION_CREDENTIALS pointing at a service account key).
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
