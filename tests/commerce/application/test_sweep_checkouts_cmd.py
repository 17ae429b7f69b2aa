"""Application tests for the periodic checkout sweep."""

import json
from datetime import timedelta

import pytest
from commerce.checkout.checkout import Checkout, CheckoutStatus
from commerce.checkout.conversion import CompleteCheckout
from commerce.checkout.expiry import SweepCheckouts, SweepResult
from commerce.checkout.items import AddCheckoutItem
from commerce.checkout.management import SetCustomerDetails, SetShippingAddress, StartCheckout
from commerce.shared.clock import utc_now
from protean import current_domain
from protean.exceptions import ValidationError


def _start(session_id):
    return current_domain.process(StartCheckout(session_id=session_id), asynchronous=False)


def _sweep(after):
    return current_domain.process(SweepCheckouts(as_of=utc_now() + after), asynchronous=False)


def _checkout(checkout_id):
    return current_domain.repository_for(Checkout).get(checkout_id)


class TestSweepCheckouts:
    def test_nothing_to_do_for_fresh_checkouts(self):
        _start("sess-1")
        assert _sweep(timedelta(minutes=1)) == SweepResult(abandoned=0, deleted=0, expired=0)

    def test_idle_checkout_with_details_is_abandoned(self):
        checkout_id = _start("sess-1")
        current_domain.process(
            SetCustomerDetails(checkout_id=checkout_id, email="jo@example.com"),
            asynchronous=False,
        )

        result = _sweep(timedelta(minutes=20))

        assert result.abandoned == 1
        assert _checkout(checkout_id).status == CheckoutStatus.ABANDONED.value

    def test_anonymous_checkout_is_deleted_after_a_day(self):
        checkout_id = _start("sess-1")
        current_domain.process(
            AddCheckoutItem(checkout_id=checkout_id, product_id="p1", quantity=1, price=100),
            asynchronous=False,
        )

        result = _sweep(timedelta(hours=25))

        assert result.deleted == 1
        assert _checkout(checkout_id).is_deleted() is True

    def test_each_checkout_gets_one_action_per_sweep(self):
        checkout_id = _start("sess-1")
        current_domain.process(
            SetShippingAddress(checkout_id=checkout_id, address=json.dumps({"street1": "1 Main St", "country": "US"})),
            asynchronous=False,
        )

        # Idle and past expiry: abandonment wins this round
        first = _sweep(timedelta(hours=25))
        assert (first.abandoned, first.expired) == (1, 0)

        # Abandoned a week ago: soft-deleted next
        second = _sweep(timedelta(days=8))
        assert second.deleted == 1
        assert _checkout(checkout_id).is_deleted() is True

    def test_deleted_and_completed_checkouts_are_skipped(self):
        checkout_id = _start("sess-1")
        _sweep(timedelta(hours=25))
        assert _sweep(timedelta(days=30)) == SweepResult()
        assert _checkout(checkout_id).is_deleted() is True

    def test_sweep_reaches_every_candidate(self):
        checkout_ids = [_start(f"sess-{n}") for n in range(105)]

        result = _sweep(timedelta(hours=30))

        assert result.deleted == 105
        assert all(_checkout(checkout_id).is_deleted() for checkout_id in checkout_ids)


class TestDeletedCheckouts:
    @pytest.fixture
    def deleted_checkout(self):
        checkout_id = _start("sess-1")
        _sweep(timedelta(hours=25))
        return checkout_id

    def test_items_cannot_be_added(self, deleted_checkout):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                AddCheckoutItem(checkout_id=deleted_checkout, product_id="p1", quantity=1, price=100),
                asynchronous=False,
            )
        assert "deleted_at" in exc.value.messages
        assert not _checkout(deleted_checkout).items

    def test_details_cannot_be_set(self, deleted_checkout):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                SetCustomerDetails(checkout_id=deleted_checkout, email="jo@example.com"),
                asynchronous=False,
            )
        assert "deleted_at" in exc.value.messages

    def test_cannot_be_completed(self, deleted_checkout):
        with pytest.raises(ValidationError) as exc:
            current_domain.process(CompleteCheckout(checkout_id=deleted_checkout), asynchronous=False)
        assert "deleted_at" in exc.value.messages

    def test_same_session_starts_a_new_checkout(self, deleted_checkout):
        assert _start("sess-1") != deleted_checkout
