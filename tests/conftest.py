"""
Pytest configuration and fixtures for tests.

Environment is set before any project module is imported so that config.py
and app.py pick up test values.
"""

import os
import sys
import tempfile

import pytest

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

_db_dir = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_db_dir, "test.db")
os.environ.setdefault("DOMAIN", "http://testserver")
os.environ.setdefault("LOG_LEVEL", "WARNING")
for name in ("CHECKOUT_ENABLED", "AUTH_ENABLED", "NEXT_PUBLIC_CHECKOUT_ENABLED",
             "NEXT_PUBLIC_AUTH_ENABLED", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET",
             "CHECKOUT_SUCCESS_URL", "CHECKOUT_CANCEL_URL"):
    os.environ.pop(name, None)


@pytest.fixture
def app_module():
    import app as app_module
    return app_module


@pytest.fixture
def client(app_module):
    app_module.app.config["TESTING"] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def checkout_env(monkeypatch):
    monkeypatch.setenv("CHECKOUT_ENABLED", "true")
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_123")
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", "whsec_test")
