"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeBookingStore: In-memory users, events and participations
- FakePaymentGateway: Canned checkout sessions
- FakeNotificationPort: Captured notifications for assertion
- FakeMailDelivery: Captured mails for assertion
"""

from .mail import FakeMailDelivery
from .notification import FakeNotificationPort
from .payments import FakePaymentGateway
from .store import FakeBookingStore

__all__ = [
    "FakeBookingStore",
    "FakeMailDelivery",
    "FakeNotificationPort",
    "FakePaymentGateway",
]
