"""Configuration management for the webhook receiver."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3041
DEFAULT_WEBHOOK_PATH = "/wh"
DEFAULT_MAX_BODY_BYTES = 1024 * 1024
SECRET_ENV_PREFIX = "TRIBUTE_SECRET__"

_SLASHES = re.compile(r"/{2,}")


def normalize_webhook_path(path: str) -> str:
    """Return ``path`` with one leading slash, no repeated or trailing slashes."""
    collapsed = _SLASHES.sub("/", "/" + path.strip())
    if len(collapsed) > 1:
        collapsed = collapsed.rstrip("/")
    return collapsed or "/"


class WebhookSettings(BaseModel):
    """Process-wide settings, built once at startup and passed to the app."""

    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    log_level: str = "INFO"
    secrets: dict[str, SecretStr] = Field(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        """Key secrets by normalized path."""
        self.secrets = {
            normalize_webhook_path(path): secret for path, secret in self.secrets.items()
        }

    def get_webhook_secret(self, path: str) -> str | None:
        """Return the secret for ``path`` or ``None`` when it is not an endpoint."""
        secret = self.secrets.get(normalize_webhook_path(path))
        if secret is None:
            return None
        return secret.get_secret_value()

    def known_webhook_paths(self) -> list[str]:
        """Return the configured webhook paths, sorted."""
        return sorted(self.secrets)


def _path_from_env_name(name: str) -> str | None:
    segments = [segment.lower() for segment in name[len(SECRET_ENV_PREFIX):].split("__")]
    if not segments or any(not segment for segment in segments):
        return None
    return "/" + "/".join(segments)


def _parse_secret_map(raw: str) -> dict[str, str]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("TRIBUTE_SECRET_MAP must be a JSON object") from exc
    if not isinstance(parsed, dict):
        raise ValueError("TRIBUTE_SECRET_MAP must be a JSON object")

    secrets: dict[str, str] = {}
    for path, secret in parsed.items():
        if not isinstance(secret, str):
            raise ValueError(f"TRIBUTE_SECRET_MAP value for {path!r} must be a string")
        secrets[normalize_webhook_path(path)] = secret
    return secrets


def load_webhook_secrets(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect per-path secrets from the environment.

    Sources, later ones overriding earlier ones for the same path:

    * ``TRIBUTE_API_KEY`` for ``TRIBUTE_DEFAULT_WEBHOOK_PATH`` (``/wh``)
    * ``TRIBUTE_SECRET_MAP``, a JSON object of ``{path: secret}``
    * ``TRIBUTE_SECRET__a__b`` for ``/a/b``
    """
    env = os.environ if environ is None else environ
    secrets: dict[str, str] = {}

    default_secret = env.get("TRIBUTE_API_KEY", "")
    if default_secret:
        default_path = env.get("TRIBUTE_DEFAULT_WEBHOOK_PATH", DEFAULT_WEBHOOK_PATH)
        secrets[normalize_webhook_path(default_path)] = default_secret

    raw_map = env.get("TRIBUTE_SECRET_MAP", "").strip()
    if raw_map:
        secrets.update(_parse_secret_map(raw_map))

    for name in sorted(env):
        if not name.startswith(SECRET_ENV_PREFIX) or not env[name]:
            continue
        path = _path_from_env_name(name)
        if path is None:
            logger.warning("Ignoring malformed webhook secret variable %s", name)
            continue
        secrets[path] = env[name]

    return secrets


def load_webhook_settings(environ: Mapping[str, str] | None = None) -> WebhookSettings:
    """Load HTTP server settings and endpoint secrets from environment."""
    env = os.environ if environ is None else environ

    host = env.get("TRIBUTE_SERVER_HOST", "0.0.0.0")
    try:
        port = int(env.get("PORT", str(DEFAULT_PORT)))
    except ValueError as exc:
        raise ValueError("PORT must be an integer") from exc

    try:
        max_body_bytes = int(
            env.get("TRIBUTE_WEBHOOK_MAX_BODY_BYTES", str(DEFAULT_MAX_BODY_BYTES))
        )
    except ValueError as exc:
        raise ValueError("TRIBUTE_WEBHOOK_MAX_BODY_BYTES must be an integer") from exc

    if port < 0:
        raise ValueError("PORT must be >= 0")
    if max_body_bytes <= 0:
        raise ValueError("TRIBUTE_WEBHOOK_MAX_BODY_BYTES must be > 0")

    return WebhookSettings(
        host=host,
        port=port,
        max_body_bytes=max_body_bytes,
        log_level=env.get("TRIBUTE_LOG_LEVEL", "INFO").upper(),
        secrets={path: SecretStr(secret) for path, secret in load_webhook_secrets(env).items()},
    )


def ensure_config(settings: WebhookSettings) -> None:
    """Warn when the receiver would reject every webhook."""
    if not settings.secrets:
        logger.warning(
            "No webhook secrets configured; set TRIBUTE_API_KEY, TRIBUTE_SECRET_MAP "
            "or TRIBUTE_SECRET__<path> variables."
        )
