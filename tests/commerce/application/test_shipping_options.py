"""Application tests for shipping setup commands and option calculation."""

import pytest
from commerce.shipping.management import AddValueBasedRate, CreateShippingRate
from commerce.shipping.options import calculate_shipping_options, find_shipping_option
from commerce.shipping.rate import ShippingRate
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


class TestShippingSetup:
    def test_rate_has_tiers(self, shipping_rates):
        rate = current_domain.repository_for(ShippingRate).get(shipping_rates["standard"])
        assert len(rate.weight_based_rates) == 2
        assert rate.free_shipping_threshold == 10000

    def test_overlapping_value_tier_rejected(self, shipping_rates):
        current_domain.process(
            AddValueBasedRate(
                shipping_rate_id=shipping_rates["express"], min_order_value=0, max_order_value=5000, rate=200
            ),
            asynchronous=False,
        )
        with pytest.raises(ValidationError):
            current_domain.process(
                AddValueBasedRate(
                    shipping_rate_id=shipping_rates["express"], min_order_value=4000, max_order_value=9000, rate=100
                ),
                asynchronous=False,
            )

    def test_rate_for_unknown_method_rejected(self, shipping_rates):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                CreateShippingRate(
                    shipping_method_id="missing", shipping_zone_id=shipping_rates["zone"], base_rate=100
                ),
                asynchronous=False,
            )


class TestCalculateShippingOptions:
    def test_options_sorted_by_cost(self, shipping_rates):
        options = calculate_shipping_options("US", 3000, 1.0)
        assert [(o.name, o.cost) for o in options] == [("Standard", 500), ("Express", 1500)]

    def test_weight_tier_is_added(self, shipping_rates):
        options = calculate_shipping_options("us", 3000, 10.0)
        assert options[0].cost == 1200

    def test_free_shipping_over_threshold(self, shipping_rates):
        options = calculate_shipping_options("CA", 12000, 10.0)
        assert options[0].name == "Standard"
        assert options[0].cost == 0
        assert options[0].free_shipping is True

    def test_rate_below_minimum_is_skipped(self, shipping_rates):
        options = calculate_shipping_options("US", 1000, 1.0)
        assert [o.name for o in options] == ["Standard"]

    def test_uncovered_country(self, shipping_rates):
        assert calculate_shipping_options("DE", 3000, 1.0) == []

    def test_find_shipping_option(self, shipping_rates):
        option = find_shipping_option(shipping_rates["express"], "US", 3000, 1.0)
        assert option.cost == 1500
        assert option.estimated_delivery_days == 1
        assert find_shipping_option(shipping_rates["express"], "US", 1000, 1.0) is None
