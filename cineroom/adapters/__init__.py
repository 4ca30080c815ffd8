"""External adapters for the CinéRoom booking service.

This package contains all external dependencies (SQLite, Stripe, SMTP,
HTTP server, etc.) and provides implementations of the core port interfaces.

Adapter Organization:

- store/: Booking persistence (SQLite)
- payments/: Hosted checkout (Stripe)
- mail/: Mail transports (stdout, outbox directory, SMTP)
- notification/: NotificationPort backed by the mailers
- web/: HTTP server, request receiver and webhook signature checks
- cli/: Command-line administration
"""
