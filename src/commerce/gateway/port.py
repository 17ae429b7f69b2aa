"""Payment provider port (abstract interface).

Defines the contract every provider adapter implements. The orchestrator
routes each call to the adapter registered for the requested provider, so
domain and application code never depend on a specific provider SDK.

Amounts are integer cents throughout.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum


class ProviderType(Enum):
    STRIPE = "stripe"
    MOBILEPAY = "mobilepay"
    MOCK = "mock"


class PaymentMethod(Enum):
    CREDIT_CARD = "credit_card"
    WALLET = "wallet"


class PaymentProviderError(Exception):
    """A provider rejected a request or could not be reached."""


class ProviderNotAvailableError(PaymentProviderError):
    """No adapter is registered for the requested provider."""

    def __init__(self, provider) -> None:
        self.provider = provider
        super().__init__(f"payment provider {provider} not available")


@dataclass(frozen=True)
class CardDetails:
    card_number: str
    expiry_month: int
    expiry_year: int
    cvv: str
    cardholder_name: str
    token: str | None = None


@dataclass(frozen=True)
class PaymentRequest:
    """A request to take payment for an order."""

    order_id: str
    order_number: str
    amount: int
    currency: str
    payment_method: PaymentMethod
    payment_provider: ProviderType
    card_details: CardDetails | None = None
    phone_number: str | None = None
    customer_email: str | None = None


@dataclass(frozen=True)
class PaymentResult:
    """Result of a provider operation."""

    success: bool
    transaction_id: str | None = None
    message: str | None = None
    requires_action: bool = False
    action_url: str | None = None
    provider: ProviderType | None = None


@dataclass(frozen=True)
class ProviderInfo:
    """What a provider offers, for display at checkout."""

    type: ProviderType
    name: str
    description: str
    methods: tuple[PaymentMethod, ...]
    enabled: bool = True
    supported_currencies: tuple[str, ...] = field(default_factory=tuple)
    icon_url: str | None = None

    def supports_currency(self, currency: str) -> bool:
        return not self.supported_currencies or currency.upper() in self.supported_currencies


class PaymentProvider(ABC):
    """Abstract payment provider interface."""

    @abstractmethod
    def info(self) -> ProviderInfo:
        """Describe the provider and the currencies and methods it supports."""
        ...

    @abstractmethod
    def process_payment(self, request: PaymentRequest) -> PaymentResult:
        """Start a payment (authorization) for an order."""
        ...

    @abstractmethod
    def verify_payment(self, transaction_id: str) -> bool:
        """Check with the provider that a payment went through."""
        ...

    @abstractmethod
    def capture_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        """Capture a previously authorized payment."""
        ...

    @abstractmethod
    def refund_payment(self, transaction_id: str, currency: str, amount: int) -> PaymentResult:
        """Refund a captured payment, in full or in part."""
        ...

    @abstractmethod
    def cancel_payment(self, transaction_id: str) -> PaymentResult:
        """Release an authorization that will not be captured."""
        ...

    @abstractmethod
    def force_approve_payment(self, transaction_id: str, phone_number: str) -> None:
        """Approve a pending payment without customer interaction (test environments)."""
        ...

    def available_providers(self) -> list[ProviderInfo]:
        """Provider options this adapter offers, empty when disabled."""
        info = self.info()
        return [info] if info.enabled else []

    def register_webhook(self, url: str, events: list[str]) -> str | None:
        """Subscribe to provider events. Providers without webhooks return None."""
        return None

    def delete_webhook(self, webhook_id: str) -> None:  # noqa: B027
        """Remove a provider event subscription."""
