from datetime import datetime
from decimal import Decimal

import pytest
import requests
from django.utils import timezone
from rest_framework.test import APIClient

from apps.boosts.gateway import PAYHERO_API
from apps.boosts.models import Boost


def pytest_configure(config):
    config.addinivalue_line("markers", "payment: mark test as payment-related")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_boost(db):
    """Factory for Boost rows; pass paid_at to create an already-paid boost."""

    def _make_boost(identification_number="12345678", amount="5000.00", fee="150.00", paid_at=None, **extra):
        boost = Boost.objects.create(
            identification_number=identification_number,
            amount=Decimal(amount),
            fee=Decimal(fee),
            **extra,
        )
        if paid_at is not None:
            boost.mark_paid(paid_at)
        return boost

    return _make_boost


@pytest.fixture
def aware():
    """Build an aware datetime in the project time zone."""

    def _aware(*args):
        return timezone.make_aware(datetime(*args), timezone.get_current_timezone())

    return _aware


def make_response(status_code, body):
    resp = requests.Response()
    resp.status_code = status_code
    resp._content = body.encode() if isinstance(body, str) else body
    resp.url = PAYHERO_API
    return resp


@pytest.fixture
def payhero_response():
    return make_response
