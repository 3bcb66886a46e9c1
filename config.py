import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as stayslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "stayslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "stayslot_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = False  # set True when using HTTPS

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Pricing (amounts in whole currency units)
    TAX_RATE = float(os.getenv("TAX_RATE", "0.12"))
    SERVICE_FEE = int(os.getenv("SERVICE_FEE", "500"))
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

    # Booking rules
    MAX_STAY_NIGHTS = int(os.getenv("MAX_STAY_NIGHTS", "60"))
    BOOKINGS_PAGE_SIZE = 10

    # Retry loop around booking/payment units of work
    CONFIRM_MAX_ATTEMPTS = 3
    CONFIRM_BACKOFF_SECONDS = 0.1

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv(
        "STRIPE_SUCCESS_URL",
        "http://localhost:5173/payment-status?order_id={order_id}"
    )
    STRIPE_CANCEL_URL = os.getenv(
        "STRIPE_CANCEL_URL",
        "http://localhost:5173/payment-status?order_id={order_id}&cancelled=1"
    )

    # Basic app settings
    DEBUG = False
