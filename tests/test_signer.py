"""
Tests for aethera_staking.signer — Ed25519 keys and Aptos address derivation.
"""

import hashlib

import pytest
from ecdsa import Ed25519, VerifyingKey

from aethera_staking.errors import ConfigurationError
from aethera_staking.signer import Ed25519Signer, derive_address
from conftest import RFC8032_PUBLIC, RFC8032_SECRET


class TestKeyParsing:

    @pytest.mark.parametrize("encoded", [
        RFC8032_SECRET,
        "0x" + RFC8032_SECRET,
        "ed25519-priv-0x" + RFC8032_SECRET,
        "  0x" + RFC8032_SECRET + "\n",
    ])
    def test_accepted_encodings(self, encoded):
        signer = Ed25519Signer.from_hex(encoded)
        assert signer.public_key.hex() == RFC8032_PUBLIC

    def test_rejects_non_hex(self):
        with pytest.raises(ConfigurationError):
            Ed25519Signer.from_hex("0xnothex")

    def test_rejects_wrong_length(self):
        with pytest.raises(ConfigurationError, match="32 bytes"):
            Ed25519Signer.from_hex("0x" + "ab" * 16)


class TestAddress:

    def test_address_is_sha3_of_key_and_scheme(self):
        pub = bytes.fromhex(RFC8032_PUBLIC)
        expected = "0x" + hashlib.sha3_256(pub + b"\x00").hexdigest()
        assert derive_address(pub) == expected

    def test_signer_address(self):
        signer = Ed25519Signer.from_hex(RFC8032_SECRET)
        assert signer.address == derive_address(bytes.fromhex(RFC8032_PUBLIC))
        assert len(signer.address) == 66


class TestSigning:

    def test_rfc8032_empty_message_signature(self):
        signer = Ed25519Signer.from_hex(RFC8032_SECRET)
        sig = signer.sign(b"")
        assert sig.hex() == (
            "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e06522490155"
            "5fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
        )

    def test_signature_verifies(self):
        signer = Ed25519Signer.from_hex(RFC8032_SECRET)
        msg = b"APTOS::RawTransaction" + b"\x01" * 40
        sig = signer.sign(msg)
        vk = VerifyingKey.from_string(signer.public_key, curve=Ed25519)
        assert vk.verify(sig, msg)

    def test_signature_payload_shape(self):
        signer = Ed25519Signer.from_hex(RFC8032_SECRET)
        payload = signer.signature_payload(b"msg")
        assert payload["type"] == "ed25519_signature"
        assert payload["public_key"] == "0x" + RFC8032_PUBLIC
        assert payload["signature"].startswith("0x")
        assert len(payload["signature"]) == 2 + 128
