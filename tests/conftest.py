import os

# Configure the service before any storefront module reads settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["EVENTS_ENABLED"] = "false"
os.environ["LOG_JSON"] = "false"
os.environ["PESAPAL_CONSUMER_KEY"] = "test-key"
os.environ["PESAPAL_CONSUMER_SECRET"] = "test-secret"
os.environ["PESAPAL_NOTIFICATION_ID"] = "ipn-test"

from datetime import datetime, timedelta, timezone  # noqa: E402

import httpx  # noqa: E402
import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront import models  # noqa: E402,F401
from storefront.api.dependencies import get_event_publisher, get_payment_gateway  # noqa: E402
from storefront.config import settings  # noqa: E402
from storefront.database import Base, get_db  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.services.payment_gateway import PaymentGatewayClient  # noqa: E402


TEST_DATABASE_URL = "sqlite://"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False
)


@event.listens_for(test_engine, "connect")
def enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(bind=test_engine, autocommit=False, autoflush=False)


class RecordingPublisher:
    """Collects events instead of sending them to RabbitMQ"""

    def __init__(self):
        self.events = []

    def _record(self, event_type, data):
        self.events.append({"event_type": event_type, "data": data})
        return True

    def publish_order_created(self, order_data):
        return self._record("OrderCreated", order_data)

    def publish_order_status_changed(self, order_data):
        return self._record("OrderStatusChanged", order_data)

    def publish_payment_status_changed(self, payment_data):
        return self._record("OrderPaymentStatusChanged", payment_data)

    def of_type(self, event_type):
        return [e["data"] for e in self.events if e["event_type"] == event_type]


class FakeGateway:
    """
    Serves the gateway endpoints from canned responses

    Set ``token``, ``submit`` or ``status`` to a ``(status_code, json)``
    tuple or to an exception instance to change what the gateway returns.
    """

    def __init__(self):
        self.requests = []
        self.tracking_ids = ["T123"]
        self.redirect_url = "https://pay.x/y"
        self.payment_status = "Completed"
        self.token = None
        self.submit = None
        self.status = None

    def _default_submit(self):
        tracking_id = self.tracking_ids.pop(0) if self.tracking_ids else f"TRK-{len(self.requests)}"
        return 200, {
            "order_tracking_id": tracking_id,
            "merchant_reference": "ORDER-1",
            "redirect_url": self.redirect_url,
            "error": None,
            "status": "200"
        }

    def _default_status(self):
        return 200, {
            "payment_method": "Visa",
            "amount": 1500.0,
            "created_date": "2025-01-01T10:00:00",
            "confirmation_code": "CONF-1",
            "payment_status_description": self.payment_status,
            "description": None,
            "message": "Request processed successfully",
            "payment_account": "476173**0010",
            "call_back_url": "http://localhost:3000/payment/callback",
            "status_code": 1,
            "merchant_reference": "ORDER-1",
            "currency": "KES",
            "error": {"error_type": None, "code": None, "message": None, "call_back_url": None},
            "status": "200"
        }

    def _respond(self, configured, default):
        if isinstance(configured, Exception):
            raise configured
        status_code, body = configured if configured is not None else default()
        return httpx.Response(status_code, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/Auth/RequestToken"):
            return self._respond(self.token, lambda: (200, {"token": "test-token", "expiryDate": "2099-01-01T00:00:00Z"}))
        if path.endswith("/Transactions/SubmitOrderRequest"):
            return self._respond(self.submit, self._default_submit)
        if path.endswith("/Transactions/GetTransactionStatus"):
            return self._respond(self.status, self._default_status)
        return httpx.Response(404, json={"error": {"message": "unknown endpoint"}})

    def requests_to(self, suffix):
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def client(self, config=settings):
        return PaymentGatewayClient(config=config, transport=httpx.MockTransport(self.handler))


def make_token(user_id: int, role: str = "customer", expires_in: int = 3600, secret: str = None) -> str:
    payload = {
        "sub": str(user_id),
        "email": f"user{user_id}@example.com",
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    }
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user_id: int, role: str = "customer") -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=test_engine)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def event_publisher():
    return RecordingPublisher()


@pytest_asyncio.fixture
async def client(db_session, fake_gateway, event_publisher):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway.client()
    app.dependency_overrides[get_event_publisher] = lambda: event_publisher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def customer_headers():
    return auth_headers(7)


@pytest.fixture
def admin_headers():
    return auth_headers(1, role="admin")
