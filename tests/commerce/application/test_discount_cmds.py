"""Application tests for discount management commands."""

import json
from datetime import UTC, datetime, timedelta

import pytest
from commerce.discount.discount import Discount
from commerce.discount.management import (
    ActivateDiscount,
    CreateDiscount,
    DeactivateDiscount,
    find_discount_by_code,
)
from protean import current_domain
from protean.exceptions import ValidationError


class TestCreateDiscount:
    def test_create_product_discount(self, make_discount):
        discount_id = make_discount(
            code="shoes15",
            discount_type="product",
            value=15.0,
            product_ids=json.dumps(["p1", "p2"]),
            category_ids=json.dumps(["footwear"]),
            usage_limit=100,
        )
        discount = current_domain.repository_for(Discount).get(discount_id)
        assert discount.code == "SHOES15"
        assert discount.product_ids == ["p1", "p2"]
        assert discount.category_ids == ["footwear"]
        assert discount.usage_limit == 100
        assert discount.current_usage == 0

    def test_find_by_code_is_case_insensitive(self, make_discount):
        discount_id = make_discount(code="WELCOME")
        assert str(find_discount_by_code("welcome").id) == discount_id

    def test_unknown_code(self):
        assert find_discount_by_code("NOPE") is None

    def test_duplicate_code_rejected(self, make_discount):
        make_discount(code="WELCOME")
        with pytest.raises(ValidationError):
            make_discount(code="welcome")

    def test_unknown_type_rejected(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            current_domain.process(
                CreateDiscount(
                    code="BAD",
                    discount_type="shipping",
                    method="fixed",
                    value=5.0,
                    start_date=now,
                    end_date=now + timedelta(days=1),
                ),
                asynchronous=False,
            )


class TestActivation:
    def test_deactivate_and_reactivate(self, make_discount):
        discount_id = make_discount()
        repo = current_domain.repository_for(Discount)

        current_domain.process(DeactivateDiscount(discount_id=discount_id), asynchronous=False)
        assert repo.get(discount_id).is_valid() is False

        current_domain.process(ActivateDiscount(discount_id=discount_id), asynchronous=False)
        assert repo.get(discount_id).is_valid() is True
