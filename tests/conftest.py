import pytest

from app import create_app
from config import Config
from models import db
from models.hotel import Hotel
from models.user import Role, User
from security.password import hash_password
from services.errors import PaymentProviderError
from services.payment_provider import ProviderOrder
from utils.seed import seed_roles

PASSWORD = "correct-horse-42"


class FakePaymentProvider:
    """In-memory stand-in for Stripe Checkout."""

    def __init__(self):
        self.orders = {}
        self.statuses = {}
        self.fetch_calls = []
        self.fail_create = False

    def create_order(self, order_id, amount, currency, customer):
        if self.fail_create:
            raise PaymentProviderError("Failed to create payment order")
        session_id = f"cs_test_{len(self.orders) + 1}"
        self.orders[order_id] = {
            "session_id": session_id,
            "amount": amount,
            "currency": currency,
            "customer": customer,
        }
        return ProviderOrder(session_id=session_id, checkout_url=f"https://checkout.test/{session_id}")

    def fetch_order_status(self, order_id, session_id):
        self.fetch_calls.append(order_id)
        return self.statuses.get(order_id, "ACTIVE")

    def mark(self, order_id, status="PAID"):
        self.statuses[order_id] = status


@pytest.fixture
def provider():
    return FakePaymentProvider()


@pytest.fixture
def app(tmp_path, provider):
    class TestConfig(Config):
        TESTING = True
        SECRET_KEY = "test-secret"
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "stayslot-test.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}
        BCRYPT_ROUNDS = 4
        CONFIRM_BACKOFF_SECONDS = 0
        SEED_ROLES_ON_STARTUP = False
        STRIPE_WEBHOOK_SECRET = "whsec_test_secret"

    app = create_app(TestConfig, payment_provider=provider)
    with app.app_context():
        db.create_all()
        seed_roles()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(email=None, admin=False):
        counter["n"] += 1
        email = email or f"guest{counter['n']}@example.com"
        with app.app_context():
            user = User(email=email, password_hash=hash_password(PASSWORD))
            user.roles.append(Role.query.filter_by(name="GUEST").first())
            if admin:
                user.roles.append(Role.query.filter_by(name="ADMIN").first())
            db.session.add(user)
            db.session.commit()
            return user.id

    return _make


@pytest.fixture
def make_hotel(app):
    def _make(price_per_night=1000, name="Hotel X", is_active=True):
        with app.app_context():
            hotel = Hotel(name=name, city="Goa", country="India", price_per_night=price_per_night, is_active=is_active)
            db.session.add(hotel)
            db.session.commit()
            return hotel.id

    return _make


@pytest.fixture
def login(app):
    def _login(user_id):
        with app.app_context():
            email = db.session.get(User, user_id).email
        client = app.test_client()
        resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
        assert resp.status_code == 200, resp.get_json()
        return client

    return _login
