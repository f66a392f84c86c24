"""
Core enums for the simulator studio.

String enums keep stored values readable in the database and in JSON.
"""

from enum import Enum


class BookingStatus(str, Enum):
    """Stored booking lifecycle statuses."""

    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class DisplayStatus(str, Enum):
    """Statuses shown to users; COMPLETED is derived, never stored."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CreditTransactionKind(str, Enum):
    """Kinds of credit ledger entries."""

    PURCHASE = "purchase"
    DEBIT = "debit"
    REFUND = "refund"
    ADMIN_SET = "admin_set"


class ResourceType(str, Enum):
    """Resources that can be reserved for a one-hour slot."""

    SIMULATOR = "simulator"
    COACH = "coach"
