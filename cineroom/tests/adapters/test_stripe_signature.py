"""Tests for Stripe webhook signature verification."""

import pytest

from cineroom.adapters.web.stripe_signature import (
    compute_signature,
    signature_header,
    verify_stripe_signature,
)
from cineroom.core.errors import SignatureVerificationError

SECRET = "whsec_test"
PAYLOAD = b'{"type": "checkout.session.completed"}'
NOW = 1_700_000_000


class TestVerifyStripeSignature:
    def test_valid_signature_returns_timestamp(self):
        header = signature_header(PAYLOAD, SECRET, timestamp=NOW)

        assert verify_stripe_signature(PAYLOAD, header, SECRET, now=NOW + 10) == NOW

    def test_any_matching_v1_is_accepted(self):
        good = compute_signature(PAYLOAD, SECRET, NOW)
        header = f"t={NOW},v1=deadbeef,v1={good},v0=ignored"

        assert verify_stripe_signature(PAYLOAD, header, SECRET, now=NOW) == NOW

    def test_tampered_payload(self):
        header = signature_header(PAYLOAD, SECRET, timestamp=NOW)

        with pytest.raises(SignatureVerificationError, match="No signature matches"):
            verify_stripe_signature(PAYLOAD + b" ", header, SECRET, now=NOW)

    def test_expired_timestamp(self):
        header = signature_header(PAYLOAD, SECRET, timestamp=NOW)

        with pytest.raises(SignatureVerificationError, match="tolerance"):
            verify_stripe_signature(PAYLOAD, header, SECRET, tolerance=300, now=NOW + 301)

    @pytest.mark.parametrize(
        "header",
        [None, "", "v1=abc", f"t={NOW}", "t=soon,v1=abc"],
    )
    def test_malformed_header(self, header):
        with pytest.raises(SignatureVerificationError):
            verify_stripe_signature(PAYLOAD, header, SECRET, now=NOW)

    def test_missing_secret(self):
        header = signature_header(PAYLOAD, SECRET, timestamp=NOW)

        with pytest.raises(SignatureVerificationError, match="secret"):
            verify_stripe_signature(PAYLOAD, header, None, now=NOW)
