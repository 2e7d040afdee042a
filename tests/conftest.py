"""
Shared pytest fixtures for the vault advisor test suite.

Provides:
  - ``reference_records``: five raw ledger records (JSON-string funds).
  - ``app_config``: default ``AppConfig`` (no TOML file needed).

Builders for records, feature vectors, and profiles live in ``factories``.
"""

from __future__ import annotations

from typing import Any

import pytest
from factories import reference_record_list

from vault_advisor.config import AppConfig


@pytest.fixture
def reference_records() -> list[dict[str, Any]]:
    return reference_record_list()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig()
