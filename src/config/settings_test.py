"""Test settings: file-backed SQLite, in-memory cache, eager Celery, fast hashing."""

import os
import tempfile
from decimal import Decimal

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test_key_secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "test_webhook_secret")

from config.settings import *  # noqa: E402,F401,F403
from config.settings import REST_FRAMEWORK  # noqa: E402

DEBUG = False

# File-backed so threaded tests share one database; IMMEDIATE transactions
# make concurrent writers queue on the database lock instead of failing.
TEST_DATABASE_PATH = os.path.join(tempfile.gettempdir(), "agri_wholesale_test.sqlite3")

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": TEST_DATABASE_PATH,
        "OPTIONS": {"transaction_mode": "IMMEDIATE", "timeout": 20},
        "TEST": {"NAME": TEST_DATABASE_PATH},
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

SELLER_STATE = "Maharashtra"
ORDER_SHIPPING_CHARGE = Decimal("0")
ORDER_NUMBER_PREFIX = "JT"
INVOICE_NUMBER_PREFIX = "JTI"
LOW_STOCK_DEFAULT_THRESHOLD = 10
STOCK_WRITE_MAX_RETRIES = 3

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_RATES": {
        **REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"],
        "anon": "10000/day",
        "user": "10000/hour",
        "order_creation": "1000/minute",
        "order_listing": "1000/minute",
    },
}
