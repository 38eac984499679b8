"""Runtime settings, read from the environment.

Every value has a development default so the CLI works out of the box
against a local SQLite file under ``./data``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_DEFAULT_DATA_DIR = Path.cwd() / "data"


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    tokens_file: Path
    stripe_secret_key: str | None
    currency: str = "usd"
    payment_timeout: float = 30.0
    log_level: str = "WARNING"
    log_json: bool = False

    @staticmethod
    def from_env(environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        data_dir = Path(env.get("STOREFRONT_DATA_DIR", str(_DEFAULT_DATA_DIR)))
        return Settings(
            database_url=env.get(
                "STOREFRONT_DATABASE_URL", f"sqlite:///{data_dir / 'storefront.db'}"
            ),
            tokens_file=Path(env.get("STOREFRONT_TOKENS_FILE", str(data_dir / "tokens.json"))),
            stripe_secret_key=env.get("STRIPE_SECRET_KEY") or None,
            currency=env.get("STOREFRONT_CURRENCY", "usd").lower(),
            payment_timeout=float(env.get("STOREFRONT_PAYMENT_TIMEOUT", "30")),
            log_level=env.get("STOREFRONT_LOG_LEVEL", "WARNING").upper(),
            log_json=_flag(env.get("STOREFRONT_LOG_JSON")),
        )
