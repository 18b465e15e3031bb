"""Booking code slip extraction service."""

__version__ = "1.0.0"
