"""Checkout sweep: abandon idle checkouts, purge stale ones, expire old ones.

Designed to be triggered periodically by an external scheduler. Each
checkout gets at most one action per sweep, in this order of precedence:
abandon, delete (soft), expire. A failure on one checkout is logged and the
sweep moves on.
"""

from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime
from protean.utils.globals import current_domain

from commerce.checkout.checkout import Checkout, CheckoutStatus
from commerce.domain import commerce, logger
from commerce.shared.clock import as_utc, utc_now


@commerce.command(part_of="Checkout")
class SweepCheckouts:
    """Apply abandonment, deletion and expiry rules to all open checkouts."""

    as_of = DateTime()  # Optional: defaults to now


@dataclass(frozen=True)
class SweepResult:
    abandoned: int = 0
    deleted: int = 0
    expired: int = 0


@commerce.command_handler(part_of=Checkout)
class SweepCheckoutsHandler:
    @handle(SweepCheckouts)
    def sweep_checkouts(self, command):
        now = as_utc(command.as_of) or utc_now()
        repo = current_domain.repository_for(Checkout)

        open_statuses = [CheckoutStatus.ACTIVE.value, CheckoutStatus.ABANDONED.value, CheckoutStatus.EXPIRED.value]
        candidates = (
            repo._dao.query.filter(status__in=open_statuses, deleted_at__isnull=True).limit(None).all().items
        )
        logger.info("Sweeping checkouts", candidates=len(candidates), as_of=now.isoformat())

        abandoned = deleted = expired = 0
        for checkout in candidates:
            try:
                if checkout.should_be_abandoned(now):
                    checkout.mark_as_abandoned()
                    abandoned += 1
                elif checkout.should_be_deleted(now):
                    checkout.mark_as_deleted()
                    deleted += 1
                elif checkout.status == CheckoutStatus.ACTIVE.value and checkout.is_expired(now):
                    checkout.mark_as_expired()
                    expired += 1
                else:
                    continue
                repo.add(checkout)
            except ValidationError as exc:
                logger.warning(
                    "Failed to sweep checkout",
                    checkout_id=str(checkout.id),
                    status=checkout.status,
                    error=str(exc),
                )

        logger.info("Checkout sweep finished", abandoned=abandoned, deleted=deleted, expired=expired)
        return SweepResult(abandoned=abandoned, deleted=deleted, expired=expired)
