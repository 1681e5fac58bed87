from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class PaymentOutcome(str, Enum):
    """Status values reported by the external payment site."""

    PAID = "paid"
    FAILED = "failed"
    PENDING = "pending"


class MessagingMethod(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    BOTH = "both"


class PermitStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    TEMPLATE = "template"
