from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _get_env(*keys: str, default: str | None = None) -> str | None:
    for k in keys:
        v = os.getenv(k)
        if v is not None and str(v).strip() != "":
            return v.strip()
    return default


def _get_int(*keys: str, default: int) -> int:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    return int(v)


def _get_bool(*keys: str, default: bool) -> bool:
    v = _get_env(*keys, default=None)
    if v is None:
        return default
    if v.lower() in ("1", "true", "yes", "on"):
        return True
    if v.lower() in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean value for {keys[0]}: {v!r}")


@dataclass(frozen=True)
class Settings:
    prices_with_vat: bool
    rounding_decimals: int
    weight_decimals: int


def load_settings(dotenv_path: str | None = None) -> Settings:
    """
    Читает настройки корзины по умолчанию из окружения.
    .env подгружается здесь, а не при импорте; уже заданные переменные не перезаписываются.
    """
    load_dotenv(dotenv_path=dotenv_path)
    s = Settings(
        prices_with_vat=_get_bool("TAXCART_PRICES_WITH_VAT", default=True),
        rounding_decimals=_get_int("TAXCART_ROUNDING_DECIMALS", default=2),
        weight_decimals=_get_int("TAXCART_WEIGHT_DECIMALS", default=6),
    )
    if s.rounding_decimals < 0:
        raise RuntimeError("TAXCART_ROUNDING_DECIMALS must be >= 0")
    if s.weight_decimals < 0:
        raise RuntimeError("TAXCART_WEIGHT_DECIMALS must be >= 0")
    return s



@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Настройки по умолчанию, прочитанные при первом обращении"""
    return load_settings()
