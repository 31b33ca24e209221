"""Credential status for the service token and the upstream API key."""

from rich.console import Console

from core.config import CONFIG_FILE, Config, load_config
from ui.log_utils import mask

console = Console()


def missing_credentials(config: Config) -> list[str]:
    """Return the environment names of required secrets that are not configured."""
    missing = []
    if not config.auth.service_token:
        missing.append("SERVICE_TOKEN")
    if not config.upstream.api_key:
        missing.append("OPENAI_API_KEY")
    return missing


def print_auth_status(config: Config) -> bool:
    """Print which credentials are configured, masked. Return True if all are set."""
    rows = [
        ("Service token", config.auth.service_token),
        ("Upstream API key", config.upstream.api_key),
    ]
    for label, value in rows:
        if value:
            console.print(f"[green]{label}:[/green] {mask(value)}")
        else:
            console.print(f"[yellow]{label}:[/yellow] not configured")

    console.print(f"[bold]Upstream:[/bold] {config.upstream.base_url}")

    missing = missing_credentials(config)
    if missing:
        console.print(f"\n[dim]Set {', '.join(missing)} in the environment, .env or {CONFIG_FILE}[/dim]")
        return False
    return True


def main():
    """CLI entry point for auth check."""
    print_auth_status(load_config())


if __name__ == "__main__":
    main()
