import json
from unittest import TestCase

import pytest
from marshmallow import ValidationError

from ..jwe import JweEnvelope, JweRecipient, b64url, from_b64url


class TestJwe(TestCase):
    def test_b64url(self):
        assert b64url("Hello World") == "SGVsbG8gV29ybGQ"
        assert from_b64url("SGVsbG8gV29ybGQ") == b"Hello World"

    def test_envelope_serialize(self):
        env = JweEnvelope()
        env.add_recipient(
            JweRecipient(encrypted_key=b"key", header={"kid": "recip-verkey"})
        )
        env.set_protected({"enc": "xchacha20poly1305_ietf", "typ": "JWM/1.0"})
        env.set_payload(b"ciphertext", b"nonce", b"tag")

        message = env.to_json()
        assert set(json.loads(message)) == {"protected", "iv", "ciphertext", "tag"}

        loaded = JweEnvelope.from_json(message)
        assert loaded.protected == {"enc": "xchacha20poly1305_ietf", "typ": "JWM/1.0"}
        assert loaded.protected_bytes == env.protected_bytes
        assert loaded.ciphertext == b"ciphertext"
        assert loaded.iv == b"nonce"
        assert loaded.tag == b"tag"
        assert [r.header for r in loaded.recipients] == [{"kid": "recip-verkey"}]
        assert [r.encrypted_key for r in loaded.recipients] == [b"key"]

    def test_set_protected_requires_recipients(self):
        with pytest.raises(ValidationError):
            JweEnvelope().set_protected({"enc": "xchacha20poly1305_ietf"})

    def test_serialize_incomplete(self):
        with pytest.raises(ValidationError):
            JweEnvelope().serialize()

    def test_from_json_invalid(self):
        with pytest.raises(ValidationError):
            JweEnvelope.from_json("not json")
        with pytest.raises(ValidationError):
            JweEnvelope.from_json(
                json.dumps(
                    {
                        "protected": b64url(json.dumps({"enc": "x"})),
                        "iv": "aXY",
                        "ciphertext": "Y3Q",
                        "tag": "dGFn",
                    }
                )
            )
