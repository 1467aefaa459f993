"""
Enums for Commerce Exports models.
"""

from enum import Enum


class ExportFormat(str, Enum):
    """File formats an export can be generated in."""

    CSV = "csv"
    JSON = "json"


class ExportStatus(str, Enum):
    """Status of an export job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ExecutionMode(str, Enum):
    """Where an export job is processed."""

    DIRECT = "direct"  # Inline, inside the requesting call
    QUEUE = "queue"  # Published to the export queue for the worker

    @classmethod
    def from_config(cls, value: str | None) -> "ExecutionMode":
        """Only an explicit 'queue' selects queue mode; anything else runs direct."""
        if value is not None and value.strip().lower() == cls.QUEUE.value:
            return cls.QUEUE
        return cls.DIRECT


class ColumnPolicy(str, Enum):
    """How requested export columns unknown to a handler are treated."""

    USE_REQUESTED = "use-requested"  # Pass the caller's definition through
    USE_CANONICAL = "use-canonical"  # Drop it, only canonical columns are exported
    REJECT_UNKNOWN = "reject-unknown"  # Fail the request


class ProductStatus(str, Enum):
    """Catalog product lifecycle status."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


class RunOutcome(str, Enum):
    """What the job runner did with an export request."""

    QUEUED = "queued"
    PROCESSED = "processed"


class OrderStatus(str, Enum):
    """Fulfilment status of an order."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    """Payment status of an order."""

    PENDING = "PENDING"
    PAID = "PAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"


class OrderSource(str, Enum):
    """Channel an order was placed through."""

    WEBSITE = "WEBSITE"
    MOBILE_APP = "MOBILE_APP"
    PHONE = "PHONE"
    EMAIL = "EMAIL"
    IN_STORE = "IN_STORE"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    MARKETPLACE = "MARKETPLACE"
