"""Tests for mailers and mailer previews."""
