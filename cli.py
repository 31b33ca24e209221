"""CLI entry point for openai-key-proxy."""

import sys
from datetime import datetime

from dotenv import load_dotenv
from rich.console import Console

from app import create_app
from auth import missing_credentials, print_auth_status
from core.config import CONFIG_FILE, load_config
from core.exceptions import ConfigurationError
from core.tls import validate_tls_files
from ui.dashboard import ConsoleLogger, Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, shutdown_log_executor, write_cli_log

console = Console()


def main():
    """Main CLI entry point."""
    load_dotenv()
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    headless = False

    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg in ("--check", "--auth"):
            print_auth_status(config)
            return

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Logs:[/bold] {CLI_LOG_FILE}")
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        headless = arg == "--headless"

    # Both secrets are required for all server modes
    missing = missing_credentials(config)
    if missing:
        console.print(f"[red][ERROR][/red] {', '.join(missing)} is required")
        console.print(f"[dim]Set it in the environment, .env or {CONFIG_FILE}[/dim]")
        sys.exit(1)

    try:
        validate_tls_files(config.proxy)
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    clear_logs()
    logger = ConsoleLogger() if headless else Dashboard(config)

    import uvicorn

    app = create_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.proxy.host,
        port=config.proxy.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
        ssl_certfile=config.proxy.tls_cert_path if config.proxy.tls_enabled else None,
        ssl_keyfile=config.proxy.tls_key_path if config.proxy.tls_enabled else None,
        # Upstream responses carry their own server and date headers
        server_header=False,
        date_header=False,
    )
    server = uvicorn.Server(uvicorn_config)

    scheme = "https" if config.proxy.tls_enabled else "http"
    if headless:
        console.print(f"listening on {scheme}://{config.proxy.host}:{config.proxy.port}")
    else:
        logger.start()
    start_time = datetime.now()
    write_cli_log("STARTUP", "Proxy started", url=f"{scheme}://{config.proxy.host}:{config.proxy.port}")
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Proxy stopped", duration=str(duration))
        shutdown_log_executor()
        if not headless:
            logger.stop()


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]OpenAI Key Proxy[/bold cyan]

Forwards /v1/* to the upstream API, swapping the shared service token
for the upstream API key.

[bold]Usage:[/bold]
    openai-key-proxy               Start with live dashboard
    openai-key-proxy --headless    Start with line-by-line logging
    openai-key-proxy --check       Check credential status
    openai-key-proxy --config      Show config locations
    openai-key-proxy --help        Show this help

[bold]Environment:[/bold]
    SERVICE_TOKEN       Bearer token callers must present (required)
    OPENAI_API_KEY      Upstream API key (required)
    UPSTREAM_BASE_URL   Upstream origin (default https://api.openai.com)
    BIND_HOST / BIND_PORT
    TLS_CERT_PATH / TLS_KEY_PATH   Serve HTTPS when both are set
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
