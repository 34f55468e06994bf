"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so tests can import
``produce_trading`` without installing it, and provides a fresh in-memory
store, principals for each role and a fixed clock.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from produce_trading.domain.principal import HEAD_OFFICE, Principal, Role  # noqa: E402
from tests.fakes import FIXED_NOW, InMemoryLedgerStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def director() -> Principal:
    return Principal(user_id="dir-1", role=Role.DIRECTOR, branch=HEAD_OFFICE, name="Orban")


@pytest.fixture
def manager() -> Principal:
    return Principal(user_id="mgr-1", role=Role.MANAGER, branch="MAGANJO", name="Grace Manager")


@pytest.fixture
def matugga_manager() -> Principal:
    return Principal(user_id="mgr-2", role=Role.MANAGER, branch="MATUGGA", name="Moses Manager")


@pytest.fixture
def sales_agent() -> Principal:
    return Principal(user_id="agent-1", role=Role.SALES, branch="MAGANJO", name="Sam Agent")
