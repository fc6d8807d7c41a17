"""Shared fixtures: isolate every test from QUERYAUDIT_* environment settings."""

import os

import pytest

from queryaudit.config import ENV_PREFIX, reset_config


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Drop QUERYAUDIT_* variables and the cached config around each test."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()
