from unittest import TestCase

import pytest

from ..error import WalletError
from ..key_pair import KeyPair, validate_seed

SEED = "00000000000000000000000000000000"


class TestKeyPair(TestCase):
    def test_create_seeded(self):
        key = KeyPair.create(SEED)
        assert len(key.public_key) == 32
        assert len(key.private_key) == 64
        assert key.private_key.endswith(key.public_key)
        assert key == KeyPair.create(SEED.encode("ascii"))

    def test_create_random(self):
        assert KeyPair.create() != KeyPair.create()

    def test_b58_round_trip(self):
        key = KeyPair.create(SEED)
        stored = key.to_b58()
        assert set(stored) == {"privateKey", "publicKey"}
        assert stored["publicKey"] == key.public_key_b58
        assert stored["privateKey"] == key.private_key_b58

        restored = KeyPair.from_b58(stored["publicKey"], stored["privateKey"])
        assert restored == key
        assert restored.public_key == key.public_key
        assert restored.private_key == key.private_key

    def test_bad_key_lengths(self):
        key = KeyPair.create(SEED)
        with pytest.raises(WalletError):
            KeyPair(key.public_key[:-1], key.private_key)
        with pytest.raises(WalletError):
            KeyPair(key.public_key, key.public_key)
        with pytest.raises(WalletError):
            KeyPair.from_b58(key.public_key_b58, "")

    def test_repr_hides_secret(self):
        key = KeyPair.create(SEED)
        assert key.public_key_b58 in repr(key)
        assert key.private_key_b58 not in repr(key)

    def test_validate_seed(self):
        assert validate_seed(None) is None
        assert validate_seed(SEED) == SEED.encode("ascii")

        with pytest.raises(WalletError) as excinfo:
            validate_seed({"bad": "seed"})
        assert "value is not a string or bytes" in str(excinfo.value)

        with pytest.raises(WalletError) as excinfo:
            validate_seed(f"{SEED}{SEED}")
        assert "value must be 32 bytes in length" in str(excinfo.value)
