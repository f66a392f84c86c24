"""Booking and credit ledger service for a driving-simulator studio."""

__version__ = "0.1.0"
