"""HTTP adapters.

Provides the HTTP endpoints of the service:
- Checkout return pages (success, cancel) and booking creation
- Stripe webhook receiver
- Event moderation for admins
- Mailer previews in development
"""
