"""Shared fixtures for command-level tests: reference data set up through commands."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from commerce.currency.management import AddCurrency
from commerce.discount.management import CreateDiscount
from commerce.shipping.management import (
    AddWeightBasedRate,
    CreateShippingMethod,
    CreateShippingRate,
    CreateShippingZone,
)
from protean import current_domain


def _process(command):
    return current_domain.process(command, asynchronous=False)


@pytest.fixture
def currencies():
    _process(AddCurrency(code="USD", name="US Dollar", symbol="$", exchange_rate=1.0, is_default=True))
    _process(AddCurrency(code="EUR", name="Euro", symbol="€", exchange_rate=0.85))
    return ("USD", "EUR")


@pytest.fixture
def shipping_rates():
    """Standard (500 + weight tiers, free over 10000) and Express (1500) to US/CA."""
    standard = _process(CreateShippingMethod(name="Standard", estimated_delivery_days=5))
    express = _process(CreateShippingMethod(name="Express", estimated_delivery_days=1))
    zone = _process(CreateShippingZone(name="North America", countries=json.dumps(["US", "CA"])))

    standard_rate = _process(
        CreateShippingRate(
            shipping_method_id=standard,
            shipping_zone_id=zone,
            base_rate=500,
            free_shipping_threshold=10000,
        )
    )
    _process(AddWeightBasedRate(shipping_rate_id=standard_rate, min_weight=0.0, max_weight=5.0, rate=0))
    _process(AddWeightBasedRate(shipping_rate_id=standard_rate, min_weight=5.1, max_weight=50.0, rate=700))

    express_rate = _process(
        CreateShippingRate(
            shipping_method_id=express,
            shipping_zone_id=zone,
            base_rate=1500,
            min_order_value=2000,
        )
    )
    return {"standard": standard_rate, "express": express_rate, "zone": zone}


@pytest.fixture
def make_discount():
    def _make(code="SAVE10", **overrides):
        now = datetime.now(UTC)
        fields = {
            "code": code,
            "discount_type": "basket",
            "method": "percentage",
            "value": 10.0,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
        }
        fields.update(overrides)
        return _process(CreateDiscount(**fields))

    return _make
