from __future__ import annotations

import pytest

from modules.payments.exceptions import InvalidSignature, WebhookNotConfigured
from modules.payments.signatures import compute_signature, verify_signature

pytestmark = pytest.mark.unit

SECRET = "whsec_unit"
BODY = b'{"type": "payment_intent.succeeded"}'


class TestVerifySignature:
    def test_accepts_matching_signature(self):
        verify_signature(BODY, compute_signature(BODY, SECRET), SECRET)

    def test_accepts_uppercase_hex(self):
        verify_signature(BODY, compute_signature(BODY, SECRET).upper(), SECRET)

    def test_rejects_tampered_body(self):
        signature = compute_signature(BODY, SECRET)
        with pytest.raises(InvalidSignature):
            verify_signature(BODY + b" ", signature, SECRET)

    def test_rejects_other_secret(self):
        with pytest.raises(InvalidSignature):
            verify_signature(BODY, compute_signature(BODY, "other"), SECRET)

    @pytest.mark.parametrize("signature", [None, ""])
    def test_rejects_missing_signature(self, signature):
        with pytest.raises(InvalidSignature):
            verify_signature(BODY, signature, SECRET)

    def test_empty_secret_is_a_configuration_error(self):
        with pytest.raises(WebhookNotConfigured):
            verify_signature(BODY, "anything", "")
