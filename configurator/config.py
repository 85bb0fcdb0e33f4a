from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=ROOT_DIR / ".env")


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


@dataclass(frozen=True)
class Settings:
    seed_path: str
    cart_path: str
    currency: str
    log_level: str


def load_settings() -> Settings:
    return Settings(
        seed_path=_get_env("SEED_PATH", default=str(ROOT_DIR / "data" / "seed.json")) or "",
        cart_path=_get_env("CART_PATH", default=str(ROOT_DIR / "data" / "cart.json")) or "",
        currency=_get_env("CURRENCY", default="INR") or "INR",
        log_level=(_get_env("LOG_LEVEL", default="INFO") or "INFO").upper(),
    )


settings = load_settings()
