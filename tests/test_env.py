"""
EPSSCache Repository
Introductory remarks: This module is part of the EPSSCache codebase.

Tests for environment configuration helpers.
"""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import pytest

from epsscache.utils import env


def test_load_dotenv_sets_missing_values(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """
    test_load_dotenv_sets_missing_values: Function description.
    :param tmp_path:
    :param monkeypatch:
    :returns:
    """

    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "# comment\n"
        "EPSS_DATA_URL='https://mirror.example/epss.csv.gz'\n"
        "EPSS_HTTP_TIMEOUT=30\n"
        "not a pair\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(env, "_ENV_LOADED", False)
    # Register the variable so teardown removes the value loaded below.
    monkeypatch.setenv("EPSS_DATA_URL", "")
    monkeypatch.delenv("EPSS_DATA_URL")
    monkeypatch.setenv("EPSS_HTTP_TIMEOUT", "5")

    env.load_dotenv(dotenv)

    assert os.environ["EPSS_DATA_URL"] == "https://mirror.example/epss.csv.gz"
    assert os.environ["EPSS_HTTP_TIMEOUT"] == "5"


def test_data_url_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    assert env.data_url_from_env() is None

    monkeypatch.setenv("EPSS_DATA_URL", "  https://mirror.example/x.gz ")

    assert env.data_url_from_env() == "https://mirror.example/x.gz"


def test_update_interval_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EPSS_UPDATE_INTERVAL_HOURS", "1.5")

    assert env.update_interval_from_env() == timedelta(hours=1.5)


@pytest.mark.parametrize("raw", ["soon", "-1", "nan"])
def test_update_interval_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("EPSS_UPDATE_INTERVAL_HOURS", raw)

    assert env.update_interval_from_env() is None


def test_http_timeout_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    assert env.http_timeout_from_env() is None

    monkeypatch.setenv("EPSS_HTTP_TIMEOUT", "2.5")
    assert env.http_timeout_from_env() == 2.5

    monkeypatch.setenv("EPSS_HTTP_TIMEOUT", "0")
    assert env.http_timeout_from_env() is None
