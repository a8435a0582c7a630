"""Business repository tests.

Tests for:
- SaleRepository: save (validation, timestamps), get_since
- CommissionRepository: save, get_since (cutoff / seller filter)
- NumberingRepository: create, get, list_for_tenant, set_active,
  allocate (persistence, errors, concurrent-update retries)
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from database.business_repos import NumberingRepository
from sales import numbering
from sales.commission import build_commission
from sales.errors import (
    AllocationConflictError, InactiveSequenceError, NotFoundError,
    RangeExceededError, ValidationError,
)
from sales.models import Channel, DocumentType


# ============================================================
# SaleRepository Tests
# ============================================================
class TestSaleRepository:
    """Tests for SaleRepository."""

    def test_save_basic(self, temp_db, tenant_id, now):
        sale = temp_db.sales.save(tenant_id, {
            "amount": "120.50",
            "channel": "online",
            "occurred_at": now,
        })
        assert sale.channel is Channel.ONLINE
        assert sale.amount == Decimal("120.50")
        assert sale.occurred_at == now
        assert sale.seller_id is None

    def test_pos_channel_alias(self, temp_db, tenant_id):
        sale = temp_db.sales.save(tenant_id, {"amount": 10, "channel": "pos"})
        assert sale.channel is Channel.IN_PERSON

    def test_default_timestamp_is_now(self, temp_db, tenant_id):
        before = datetime.now()
        sale = temp_db.sales.save(tenant_id, {"amount": 10, "channel": "online"})
        assert before <= sale.occurred_at <= datetime.now()

    def test_iso_string_timestamp(self, temp_db, tenant_id):
        sale = temp_db.sales.save(tenant_id, {
            "amount": 10, "channel": "online",
            "occurred_at": "2024-05-15T09:15:00",
        })
        assert sale.occurred_at == datetime(2024, 5, 15, 9, 15)

    def test_aware_timestamp_stored_as_local_time(self, temp_db, tenant_id):
        aware = datetime(2024, 5, 15, 12, 0, tzinfo=timezone.utc)
        sale = temp_db.sales.save(tenant_id, {
            "amount": 10, "channel": "online", "occurred_at": aware,
        })
        assert sale.occurred_at.tzinfo is None
        assert sale.occurred_at == aware.astimezone().replace(tzinfo=None)

    @pytest.mark.parametrize("data", [
        {"amount": 10, "channel": "fax"},
        {"amount": 10},
        {"amount": -1, "channel": "online"},
        {"amount": 10, "channel": "online", "occurred_at": "someday"},
    ])
    def test_save_rejects_invalid_data(self, temp_db, tenant_id, data):
        with pytest.raises(ValidationError):
            temp_db.sales.save(tenant_id, data)

    def test_get_since_filters_by_cutoff_and_tenant(self, temp_db, tenant_id, now):
        temp_db.tenants.create("Other", tenant_id="other")
        temp_db.sales.save(tenant_id, {"amount": 1, "channel": "online",
                                       "occurred_at": now})
        temp_db.sales.save(tenant_id, {"amount": 2, "channel": "online",
                                       "occurred_at": now - timedelta(days=3)})
        temp_db.sales.save("other", {"amount": 3, "channel": "online",
                                     "occurred_at": now})

        recent = temp_db.sales.get_since(tenant_id, now - timedelta(days=1))
        assert [s.amount for s in recent] == [Decimal("1")]
        everything = temp_db.sales.get_since(tenant_id)
        assert len(everything) == 2
        # ordered by time
        assert everything[0].amount == Decimal("2")


# ============================================================
# CommissionRepository Tests
# ============================================================
class TestCommissionRepository:
    """Tests for CommissionRepository."""

    def _sale_and_seller(self, temp_db, tenant_id, occurred_at):
        row = temp_db.sellers.create(tenant_id, "Ana", commission_rate=10)
        seller = temp_db.sellers.to_value(row)
        sale = temp_db.sales.save(tenant_id, {
            "amount": 200, "channel": "in_person", "seller_id": seller.id,
            "occurred_at": occurred_at,
        })
        return seller, sale

    def test_save_and_read_back(self, temp_db, tenant_id, now):
        seller, sale = self._sale_and_seller(temp_db, tenant_id, now)
        saved = temp_db.commissions.save(tenant_id, build_commission(seller, sale))
        assert saved.commission_amount == Decimal("20")
        assert saved.seller_name == "Ana"

        records = temp_db.commissions.get_since(tenant_id)
        assert len(records) == 1
        assert records[0].sale_id == sale.id
        assert records[0].commission_rate == Decimal("10")

    def test_get_since_filters(self, temp_db, tenant_id, now):
        seller, sale = self._sale_and_seller(temp_db, tenant_id, now)
        temp_db.commissions.save(tenant_id, build_commission(seller, sale))
        old = build_commission(seller, sale, occurred_at=now - timedelta(days=40))
        temp_db.commissions.save(tenant_id, old)

        assert len(temp_db.commissions.get_since(tenant_id, now - timedelta(days=1))) == 1
        assert len(temp_db.commissions.get_since(tenant_id, seller_id=seller.id)) == 2
        assert temp_db.commissions.get_since(tenant_id, seller_id="nobody") == []


# ============================================================
# NumberingRepository Tests
# ============================================================
class TestNumberingRepository:
    """Tests for NumberingRepository."""

    def test_create_and_get(self, temp_db, tenant_id):
        created = temp_db.numberings.create(tenant_id, "quote", "cot")
        fetched = temp_db.numberings.get(tenant_id, DocumentType.QUOTE)
        assert fetched == created
        assert fetched.prefix == "COT"

    def test_one_sequence_per_type(self, temp_db, tenant_id):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        with pytest.raises(IntegrityError):
            temp_db.numberings.create(tenant_id, "quote", "COT2")

    def test_create_validates(self, temp_db, tenant_id):
        with pytest.raises(ValidationError):
            temp_db.numberings.create(tenant_id, "quote", "COT",
                                      min_number=10, max_number=1)

    def test_get_missing(self, temp_db, tenant_id):
        with pytest.raises(NotFoundError):
            temp_db.numberings.get(tenant_id, "invoice")

    def test_get_unknown_type(self, temp_db, tenant_id):
        with pytest.raises(ValidationError):
            temp_db.numberings.get(tenant_id, "receipt")

    def test_list_for_tenant(self, temp_db, tenant_id):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        temp_db.numberings.create(tenant_id, "invoice", "FAC")
        types = {s.document_type for s in temp_db.numberings.list_for_tenant(tenant_id)}
        assert types == {DocumentType.QUOTE, DocumentType.INVOICE}

    def test_allocate_persists_counter(self, temp_db, tenant_id):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        first, seq = temp_db.numberings.allocate(tenant_id, "quote")
        second, _ = temp_db.numberings.allocate(tenant_id, "quote")
        assert (first, second) == ("COT000001", "COT000002")
        assert seq.current_number == 2
        assert temp_db.numberings.get(tenant_id, "quote").current_number == 3

    def test_allocate_inactive(self, temp_db, tenant_id):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        temp_db.numberings.set_active(tenant_id, "quote", False)
        with pytest.raises(InactiveSequenceError):
            temp_db.numberings.allocate(tenant_id, "quote")
        assert temp_db.numberings.get(tenant_id, "quote").current_number == 1

        temp_db.numberings.set_active(tenant_id, "quote", True)
        assert temp_db.numberings.allocate(tenant_id, "quote")[0] == "COT000001"

    def test_allocate_exhausted(self, temp_db, tenant_id):
        temp_db.numberings.create(tenant_id, "invoice", "FAC", min_number=1,
                                  max_number=999999, start_number=999999)
        with pytest.raises(RangeExceededError):
            temp_db.numberings.allocate(tenant_id, "invoice")

    def test_allocate_retries_after_concurrent_update(self, temp_db, tenant_id,
                                                      monkeypatch):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        real_allocate = numbering.allocate
        attempts = []

        def racing_allocate(sequence):
            attempts.append(sequence.current_number)
            if len(attempts) == 1:
                # another writer takes number 1 between our read and write
                temp_db.execute_raw_sql(
                    "UPDATE document_numberings SET current_number = 2 "
                    "WHERE id = :id", {"id": sequence.id}
                )
            return real_allocate(sequence)

        monkeypatch.setattr(numbering, "allocate", racing_allocate)
        formatted, seq = temp_db.numberings.allocate(tenant_id, "quote")

        assert attempts == [1, 2]
        assert formatted == "COT000002"
        assert seq.current_number == 3

    def test_allocate_gives_up_after_max_retries(self, temp_db, tenant_id,
                                                 monkeypatch):
        temp_db.numberings.create(tenant_id, "quote", "COT")
        repo = NumberingRepository(temp_db.conn, max_retries=2)
        real_allocate = numbering.allocate
        attempts = []

        def always_racing(sequence):
            attempts.append(sequence.current_number)
            temp_db.execute_raw_sql(
                "UPDATE document_numberings "
                "SET current_number = current_number + 1 WHERE id = :id",
                {"id": sequence.id}
            )
            return real_allocate(sequence)

        monkeypatch.setattr(numbering, "allocate", always_racing)
        with pytest.raises(AllocationConflictError):
            repo.allocate(tenant_id, "quote")
        assert len(attempts) == 2

    def test_max_retries_defaults_to_settings(self, temp_db, monkeypatch):
        from config.settings import settings
        monkeypatch.setattr(settings, "numbering_allocation_retries", 5)
        assert NumberingRepository(temp_db.conn).max_retries == 5

    @pytest.mark.parametrize("retries", [0, -1])
    def test_max_retries_must_be_positive(self, temp_db, retries):
        with pytest.raises(ValueError):
            NumberingRepository(temp_db.conn, max_retries=retries)
