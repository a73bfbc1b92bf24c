"""Environment-driven settings for the sync jobs."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from awinsync.errors import ConfigError

DEFAULT_BACKEND_URL = "http://localhost:9000"
DEFAULT_OUTPUT_DIR = "tmp"


@dataclass(slots=True, frozen=True)
class Settings:
    backend_url: str = DEFAULT_BACKEND_URL
    publishable_key: str | None = None
    admin_api_key: str | None = None
    admin_email: str | None = None
    admin_password: str | None = None
    currency: str = "gbp"
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    import_delay: float = 0.15
    stock_delay: float = 0.12
    rate_limit_retries: int = 5
    in_stock_quantity: int = 10

    def require_read(self) -> str:
        if not self.publishable_key:
            raise ConfigError("MEDUSA_PUBLISHABLE_KEY is required")
        return self.publishable_key

    def require_write(self) -> None:
        has_login = bool(self.admin_email and self.admin_password)
        if not has_login and not self.admin_api_key:
            raise ConfigError(
                "MEDUSA_ADMIN_API_KEY or MEDUSA_ADMIN_EMAIL/MEDUSA_ADMIN_PASSWORD is required for writes"
            )


def load_settings(*, dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv()
    env = os.environ
    return Settings(
        backend_url=env.get("MEDUSA_BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        publishable_key=env.get("MEDUSA_PUBLISHABLE_KEY") or env.get("NEXT_PUBLIC_MEDUSA_PUBLISHABLE_KEY"),
        admin_api_key=env.get("MEDUSA_ADMIN_API_KEY") or None,
        admin_email=env.get("MEDUSA_ADMIN_EMAIL") or None,
        admin_password=env.get("MEDUSA_ADMIN_PASSWORD") or None,
        currency=env.get("AWIN_CURRENCY", "gbp").lower(),
        output_dir=Path(env.get("SYNC_OUTPUT_DIR", DEFAULT_OUTPUT_DIR)),
        import_delay=_millis(env, "IMPORT_DELAY_MS", 150),
        stock_delay=_millis(env, "STOCK_DELAY_MS", 120),
        rate_limit_retries=_int(env, "RATE_LIMIT_RETRIES", 5),
        in_stock_quantity=_int(env, "IN_STOCK_QUANTITY", 10),
    )


def _int(env, name: str, default: int) -> int:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def _millis(env, name: str, default: int) -> float:
    return _int(env, name, default) / 1000.0
