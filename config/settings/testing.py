from .base import *  # noqa

DEBUG = True

# Use SQLite for testing to avoid needing a running PostgreSQL instance.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_db.sqlite3",
    }
}

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

PAYHERO_API_USERNAME = "test-user"
PAYHERO_API_PASSWORD = "test-pass"
PAYHERO_CHANNEL_ID = "911"
PAYHERO_CALLBACK_URL = "https://example.com/api/boosts/pay/callback/"
PAYHERO_TIMEOUT = 5.0

BOOSTS_EXPOSE_ERROR_DETAILS = False
