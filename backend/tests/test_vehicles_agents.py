"""
Vehicle & Agent Tests

Vehicle lookup, registration and payment history, agent commission views
and payouts.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from motopay.exceptions import Conflict, InvalidRequest, InvalidState, NotFound
from motopay.models import AgentCommission, Receipt, Transaction


# ============================================
# Vehicles
# ============================================

class TestVehicleLookup:
    """VehicleService"""

    def test_lookup_by_each_identifier(self, db, services, vehicle):
        assert services.vehicles.lookup(db, tin="1234567890").id == vehicle.id
        assert services.vehicles.lookup(db, plate_number="pl-582-kn").id == vehicle.id
        assert services.vehicles.lookup(db, chassis_number="1hgcm82633a004352").id == vehicle.id

    def test_lookup_requires_an_identifier(self, db, services):
        with pytest.raises(InvalidRequest):
            services.vehicles.lookup(db)

    def test_lookup_rejects_bad_format(self, db, services):
        with pytest.raises(InvalidRequest):
            services.vehicles.lookup(db, plate_number="NOT A PLATE")

    def test_lookup_miss(self, db, services, vehicle):
        with pytest.raises(NotFound):
            services.vehicles.lookup(db, plate_number="ABC-123-XY")


class TestVehicleRegistration:
    FIELDS = {
        "plate_number": "abc-123-xy",
        "chassis_number": "2T1BURHE0JC074123",
        "vehicle_type": "COMMERCIAL",
        "owner_name": "Ngozi Eze",
        "owner_contact": "ngozi@example.com",
    }

    def test_register_normalizes_identifiers(self, db, services):
        registered = services.vehicles.register(db, **self.FIELDS)
        assert registered.plate_number == "ABC-123-XY"
        assert registered.chassis_number == "2T1BURHE0JC074123"

    def test_duplicate_plate(self, db, services, vehicle):
        with pytest.raises(Conflict):
            services.vehicles.register(db, **{**self.FIELDS, "plate_number": "PL-582-KN"})


class TestVehicleHistory:
    """VehicleService.get_history"""

    def _payment(self, db, vehicle, reference, created_at, status="SUCCESS"):
        transaction = Transaction(
            reference=reference, vehicle_id=vehicle.id, email="a@b.com",
            amount=Decimal("12500"), fee=Decimal("187.50"), total_amount=Decimal("12687.50"),
            status=status, channel="SELF", created_at=created_at,
        )
        db.add(transaction)
        db.flush()
        if status == "SUCCESS":
            db.add(Receipt(transaction_id=transaction.id, receipt_number=f"RCP-{reference[-5:]}"))
        db.commit()
        return transaction

    def test_newest_first_with_receipts(self, db, services, vehicle):
        self._payment(db, vehicle, "TXN-H-00001", datetime(2024, 3, 1))
        self._payment(db, vehicle, "TXN-H-00002", datetime(2025, 3, 1), status="FAILED")
        self._payment(db, vehicle, "TXN-H-00003", datetime(2024, 9, 1))

        history = services.vehicles.get_history(db, vehicle.id)

        assert [t.reference for t in history["transactions"]] == ["TXN-H-00002", "TXN-H-00003", "TXN-H-00001"]
        assert history["transactions"][0].receipt is None
        assert history["transactions"][1].receipt.receipt_number == "RCP-00003"
        assert history["pagination"]["total"] == 3

    def test_paginated(self, db, services, vehicle):
        for month in range(1, 6):
            self._payment(db, vehicle, f"TXN-H-0000{month}", datetime(2024, month, 1))

        second = services.vehicles.get_history(db, vehicle.id, page=2, limit=2)

        assert [t.reference for t in second["transactions"]] == ["TXN-H-00003", "TXN-H-00002"]
        assert second["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}

    def test_other_vehicles_excluded(self, db, services, vehicle):
        other = services.vehicles.register(
            db, plate_number="ABC-123-XY", chassis_number="2T1BURHE0JC074123", vehicle_type="PRIVATE",
        )
        self._payment(db, other, "TXN-H-00009", datetime(2024, 1, 1))

        assert services.vehicles.get_history(db, vehicle.id)["transactions"] == []

    def test_unknown_vehicle(self, db, services):
        with pytest.raises(NotFound):
            services.vehicles.get_history(db, "missing")


# ============================================
# Agents
# ============================================

def _commission(db, agent_id, amount, status="PENDING", reference="TXN-A-00001", vehicle=None):
    transaction = Transaction(
        reference=reference, vehicle_id=vehicle.id, agent_id=agent_id, email="a@b.com",
        amount=Decimal("10000"), fee=Decimal("150"), total_amount=Decimal("10150"),
        status="SUCCESS", channel="AGENT",
    )
    db.add(transaction)
    db.flush()
    commission = AgentCommission(
        agent_id=agent_id, transaction_id=transaction.id, percentage=Decimal("2.5"),
        amount=Decimal(amount), status=status,
    )
    db.add(commission)
    db.commit()
    return commission


class TestAgents:
    """AgentService"""

    def test_summary(self, db, services, vehicle):
        _commission(db, "agent-7", "250.00", reference="TXN-A-00001", vehicle=vehicle)
        _commission(db, "agent-7", "100.00", status="PAID", reference="TXN-A-00002", vehicle=vehicle)
        _commission(db, "agent-9", "999.00", reference="TXN-A-00003", vehicle=vehicle)

        summary = services.agents.get_summary(db, "agent-7")

        assert summary["total_earnings"] == Decimal("350.00")
        assert summary["pending_commissions"] == {"amount": Decimal("250.00"), "count": 1}
        assert summary["paid_commissions"] == {"amount": Decimal("100.00"), "count": 1}
        assert summary["total_transactions"] == 2

    def test_commission_page(self, db, services, vehicle):
        _commission(db, "agent-7", "250.00", vehicle=vehicle)

        page = services.agents.get_commissions(db, "agent-7", page=1, limit=10)

        assert len(page["commissions"]) == 1
        assert page["pagination"]["total"] == 1

    def test_mark_paid_once(self, db, services, vehicle):
        commission = _commission(db, "agent-7", "250.00", vehicle=vehicle)

        paid = services.agents.mark_paid(db, commission.id, "finance-1")
        assert paid.status == "PAID"
        assert paid.paid_at is not None

        with pytest.raises(InvalidState):
            services.agents.mark_paid(db, commission.id, "finance-1")

    def test_mark_paid_unknown(self, db, services):
        with pytest.raises(NotFound):
            services.agents.mark_paid(db, 404)
