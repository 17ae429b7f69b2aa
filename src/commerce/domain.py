"""Commerce bounded context: checkout, order and payment lifecycle.

Checkouts (CQRS aggregates) accumulate items, discounts and shipping and
convert into Orders. Orders carry two coupled state machines (fulfilment
and payment), and payment events land in an idempotent transaction ledger
fed by the multi-provider payment orchestrator.
"""

from protean.domain import Domain

from commerce.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

commerce = Domain(name="commerce")
