"""Booking store adapters."""
