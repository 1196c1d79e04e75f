"""
Shared fixtures: in-memory database, fake payment gateway, seeded catalog.
"""
import asyncio
import os
import tempfile
from datetime import datetime
from decimal import Decimal

# Configure before any motopay import reads settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("PAYSTACK_SECRET_KEY", "sk_test_motopay")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="motopay-logs-"))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import motopay.models  # noqa: F401  registers tables on Base
from motopay.config import get_settings
from motopay.database import Base
from motopay.dependencies import build_services
from motopay.exceptions import GatewayUnavailable
from motopay.models import ComplianceItem, Vehicle
from motopay.services.gateway import GatewaySession, GatewayVerification, GatewayStatus
from motopay.services.notification_service import NotificationService


TEST_DATABASE_URL = "sqlite://"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeGateway:
    """In-memory stand-in for Paystack. Tests decide each verify() outcome."""

    def __init__(self):
        self.charges: dict[str, int] = {}
        self.outcomes: dict[str, GatewayVerification] = {}
        self.verify_calls: list[str] = []
        self.fail_initialize = False
        self.fail_verify = False

    async def initialize(self, amount_minor, reference, callback_url, email, metadata=None):
        await asyncio.sleep(0)
        if self.fail_initialize:
            raise GatewayUnavailable("Payment gateway timed out")
        self.charges[reference] = amount_minor
        return GatewaySession(redirect_url=f"https://checkout.test/{reference}", session_handle=f"ac_{reference[-5:]}")

    async def verify(self, reference):
        self.verify_calls.append(reference)
        await asyncio.sleep(0)
        if self.fail_verify:
            raise GatewayUnavailable("Payment gateway unreachable")
        return self.outcomes.get(reference, GatewayVerification(status=GatewayStatus.PENDING))

    def pay(self, reference, amount_minor=None):
        """Simulate the customer completing checkout."""
        self.outcomes[reference] = GatewayVerification(
            status=GatewayStatus.SUCCESS,
            paid_amount_minor=self.charges[reference] if amount_minor is None else amount_minor,
            paid_at=datetime.utcnow(),
            gateway_response="Approved",
        )

    def decline(self, reference):
        self.outcomes[reference] = GatewayVerification(
            status=GatewayStatus.FAILED, gateway_response="Declined by issuer",
        )


class RecordingNotifier(NotificationService):
    def __init__(self):
        self.receipts: list[dict] = []
        self.reminders: list[dict] = []
        self.fail = False

    def send_payment_receipt(self, email, phone, receipt):
        if self.fail:
            raise ConnectionError("SMTP relay down")
        self.receipts.append(receipt)

    def send_renewal_reminder(self, email, phone, reminder):
        if self.fail:
            raise ConnectionError("SMS provider down")
        self.reminders.append(reminder)


@pytest.fixture(name="db")
def db_fixture():
    """Create tables and provide test database session"""
    Base.metadata.create_all(bind=test_engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def services(gateway, notifier):
    return build_services(get_settings(), gateway=gateway, notifier=notifier)


@pytest.fixture
def catalog(db):
    """A small catalog: two mandatory PRIVATE items, one optional, one locked, one COMMERCIAL."""
    items = {
        "license": ComplianceItem(name="Vehicle License", vehicle_category="PRIVATE",
                                  price=Decimal("12500.00"), is_mandatory=True, validity_period_days=365),
        "insurance": ComplianceItem(name="Statutory Insurance (Third Party)", vehicle_category="PRIVATE",
                                    price=Decimal("5000.00"), is_mandatory=True, validity_period_days=365),
        "tint": ComplianceItem(name="Tinted Glass Permit", vehicle_category="PRIVATE",
                               price=Decimal("2000.00"), is_mandatory=False, validity_period_days=730),
        "registration": ComplianceItem(name="Vehicle Registration Fee", vehicle_category="PRIVATE",
                                       price=Decimal("25000.00"), is_mandatory=False,
                                       validity_period_days=3650, is_locked=True),
        "hackney": ComplianceItem(name="Hackney Permit", vehicle_category="COMMERCIAL",
                                  price=Decimal("8000.00"), is_mandatory=True, validity_period_days=365),
    }
    db.add_all(items.values())
    db.commit()
    return items


@pytest.fixture
def vehicle(db):
    car = Vehicle(
        plate_number="PL-582-KN",
        chassis_number="1HGCM82633A004352",
        tin="1234567890",
        vehicle_type="PRIVATE",
        make="Toyota",
        model="Corolla",
        year=2018,
        owner_name="Danladi Musa",
        owner_contact="owner@example.com",
        owner_phone="+2348030000000",
    )
    db.add(car)
    db.commit()
    return car
