"""Shared fixtures for the sales core test suite.

Provides a fresh temp-file SQLite DatabaseManager for each test,
plus a seeded tenant and a fixed reference time.
"""
import os
import shutil
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from database import DatabaseManager
from sales.models import (
    Channel, CommissionRecord, HumanSeller, SalesRecord,
)


TENANT_ID = "tenant1"


@pytest.fixture
def temp_db():
    """Yield a fresh DatabaseManager bound to a temp SQLite database."""
    temp_dir = tempfile.mkdtemp(prefix="sales-tests-")
    db_path = os.path.join(temp_dir, "test.db")
    manager = DatabaseManager(database_url=f"sqlite:///{db_path}")
    manager.create_tables()

    try:
        yield manager
    finally:
        manager.close()
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def tenant_id(temp_db):
    """Create the default tenant and return its id."""
    return temp_db.create_tenant("Mi Tienda", tenant_id=TENANT_ID)


@pytest.fixture
def now():
    """A fixed reference time: Wednesday 2024-05-15 14:00 (naive local)."""
    return datetime(2024, 5, 15, 14, 0, 0)


def make_sale(sale_id, amount, occurred_at, channel=Channel.IN_PERSON,
              seller_id=None):
    """Build a SalesRecord for pure-function tests."""
    return SalesRecord(
        id=sale_id,
        seller_id=seller_id,
        amount=Decimal(str(amount)),
        occurred_at=occurred_at,
        channel=channel,
    )


def make_commission(commission_id, seller_id, amount, occurred_at,
                    sale_id="sale-x", rate=5):
    """Build a CommissionRecord for pure-function tests."""
    return CommissionRecord(
        id=commission_id,
        seller_id=seller_id,
        sale_id=sale_id,
        sale_amount=Decimal("0"),
        commission_rate=Decimal(str(rate)),
        commission_amount=Decimal(str(amount)),
        occurred_at=occurred_at,
    )


@pytest.fixture
def ana():
    return HumanSeller(id="s1", name="Ana", commission_rate=Decimal("5"))
