"""Command-line interface for the Tribute webhook receiver."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from tribute_webhook import __version__
from tribute_webhook.core.config import load_webhook_settings
from tribute_webhook.core.env import load_environment
from tribute_webhook.core.logging import setup_logging
from tribute_webhook.security.codec import bytes_to_base64, bytes_to_hex
from tribute_webhook.security.signing import compute_hmac_sha256

logger = logging.getLogger(__name__)

_LOG_LEVELS = click.Choice(
    ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False
)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Tribute webhook receiver.

    Verifies HMAC-signed payment callbacks and dispatches them by event name.
    """


@cli.command()
@click.option("--host", default=None, help="Server host")
@click.option("--port", type=int, default=None, help="Server port")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload")
@click.option(
    "--log-level",
    default=None,
    type=_LOG_LEVELS,
    help="Logging level (default: TRIBUTE_LOG_LEVEL or INFO)",
)
@click.option("--log-file", default=None, help="Also write logs to this file")
@click.option("--access-log", is_flag=True, default=False, help="Log every request")
def server(
    host: str | None,
    port: int | None,
    reload: bool,
    log_level: str | None,
    log_file: str | None,
    access_log: bool,
) -> None:
    """Run the webhook HTTP server."""
    load_environment()

    try:
        settings = load_webhook_settings()
        setup_logging(
            level=log_level or settings.log_level,
            log_file=log_file,
            access_log=access_log,
        )
        resolved_host = host if host is not None else settings.host
        resolved_port = port if port is not None else settings.port

        import uvicorn

        from tribute_webhook.server.app import create_app

        logger.info("Tribute webhook listening on http://%s:%s", resolved_host, resolved_port)
        if reload:
            # Reload needs an import string; the factory re-reads settings.
            uvicorn.run(
                "tribute_webhook.server.app:create_app",
                factory=True,
                host=resolved_host,
                port=resolved_port,
                reload=True,
                log_config=None,
            )
            return
        uvicorn.run(
            create_app(settings),
            host=resolved_host,
            port=resolved_port,
            log_config=None,
        )
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        sys.exit(1)
    except Exception as exc:
        logger.exception("Unexpected error during server execution: %s", exc)
        sys.exit(1)


@cli.command()
def endpoints() -> None:
    """List configured webhook endpoints (secrets are never printed)."""
    load_environment()
    try:
        settings = load_webhook_settings()
    except ValueError as exc:
        raise click.ClickException(f"Configuration error: {exc}") from exc

    paths = settings.known_webhook_paths()
    if not paths:
        click.echo("No webhook endpoints are configured.")
        return
    for path in paths:
        click.echo(path)


@cli.command()
@click.option("--secret", required=True, help="Webhook secret to sign with")
@click.option(
    "--file",
    "body_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read the raw body from this file",
)
@click.option("--body", default=None, help="Raw body text (UTF-8)")
@click.option(
    "--format",
    "output_format",
    default="hex",
    type=click.Choice(["hex", "base64"], case_sensitive=False),
    help="Signature encoding (default: hex)",
)
@click.option("--prefix", is_flag=True, default=False, help="Prepend 'sha256='")
def sign(
    secret: str,
    body_file: Path | None,
    body: str | None,
    output_format: str,
    prefix: bool,
) -> None:
    """Print the trbt-signature value for a request body."""
    if (body_file is None) == (body is None):
        raise click.UsageError("Pass exactly one of --file or --body")

    raw = body_file.read_bytes() if body_file is not None else body.encode("utf-8")
    digest = compute_hmac_sha256(secret, raw)
    encoded = bytes_to_base64(digest) if output_format.lower() == "base64" else bytes_to_hex(digest)
    click.echo(f"sha256={encoded}" if prefix else encoded)


def main(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    cli.main(args=argv, prog_name="tribute-webhook")


if __name__ == "__main__":
    main()
