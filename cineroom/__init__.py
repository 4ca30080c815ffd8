"""CinéRoom booking service: event moderation, checkout and notification mails."""

__version__ = "0.1.0"
