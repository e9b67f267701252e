import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as resourcebook.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "resourcebook.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "resourcebook_session"
    CSRF_COOKIE_NAME = "csrf_token"
    CSRF_HEADER_NAME = "X-CSRF-Token"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = int(os.getenv("SESSION_LIFETIME_SECONDS", 8 * 60 * 60))

    # Idle timeout: 20 minutes
    IDLE_TIMEOUT_SECONDS = int(os.getenv("IDLE_TIMEOUT_SECONDS", 20 * 60))

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Pagination
    DEFAULT_PAGE_SIZE = 20          # GET /bookings, GET /resources
    MY_BOOKINGS_PAGE_SIZE = 10      # GET /bookings/my
    MAX_PAGE_SIZE = 100

    # Reject bookings whose start is in the past or whose end is not in the future
    ENFORCE_FUTURE_BOOKINGS = os.getenv("ENFORCE_FUTURE_BOOKINGS", "true").lower() == "true"

    # Basic app settings
    DEBUG = False
