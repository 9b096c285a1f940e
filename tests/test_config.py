import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
from taxcart.config import get_settings, load_settings


def test_defaults(monkeypatch):
    for key in ("TAXCART_PRICES_WITH_VAT", "TAXCART_ROUNDING_DECIMALS", "TAXCART_WEIGHT_DECIMALS"):
        monkeypatch.delenv(key, raising=False)

    s = load_settings()
    assert s.prices_with_vat is True
    assert s.rounding_decimals == 2
    assert s.weight_decimals == 6


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("TAXCART_PRICES_WITH_VAT", "false")
    monkeypatch.setenv("TAXCART_ROUNDING_DECIMALS", "0")
    monkeypatch.setenv("TAXCART_WEIGHT_DECIMALS", " 3 ")

    s = load_settings()
    assert s.prices_with_vat is False
    assert s.rounding_decimals == 0
    assert s.weight_decimals == 3


def test_invalid_settings(monkeypatch):
    monkeypatch.setenv("TAXCART_PRICES_WITH_VAT", "maybe")
    with pytest.raises(ValueError):
        load_settings()

    monkeypatch.setenv("TAXCART_PRICES_WITH_VAT", "1")
    monkeypatch.setenv("TAXCART_ROUNDING_DECIMALS", "-1")
    with pytest.raises(RuntimeError):
        load_settings()


def test_dotenv_file_is_read_by_load_settings(monkeypatch, tmp_path):
    """.env читается при вызове load_settings, переменные окружения важнее файла"""
    # setenv + delenv: при завершении теста переменная, записанная из файла, будет удалена
    monkeypatch.setenv("TAXCART_PRICES_WITH_VAT", "true")
    monkeypatch.delenv("TAXCART_PRICES_WITH_VAT")
    monkeypatch.setenv("TAXCART_ROUNDING_DECIMALS", "4")
    env_file = tmp_path / ".env"
    env_file.write_text("TAXCART_PRICES_WITH_VAT=false\nTAXCART_ROUNDING_DECIMALS=1\n")

    s = load_settings(dotenv_path=str(env_file))
    assert s.prices_with_vat is False
    assert s.rounding_decimals == 4


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
