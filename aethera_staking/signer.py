"""
Ed25519 signing credential for Aptos accounts.

Holds one private key (the server's admin key or a locally held user
key), derives the account address, and signs transaction signing
messages produced by the fullnode's ``encode_submission`` endpoint.

Accepted private-key encodings:
  - ``0x`` + 64 hex chars
  - bare 64 hex chars
  - AIP-80 ``ed25519-priv-0x`` + 64 hex chars

Address derivation (single-signer Ed25519 scheme):

    address = SHA3-256(public_key || 0x00)
"""

from __future__ import annotations

from Crypto.Hash import SHA3_256
from ecdsa import Ed25519, SigningKey

from aethera_staking.errors import ConfigurationError

_AIP80_PREFIX = "ed25519-priv-"
ED25519_SCHEME: bytes = b"\x00"


def _parse_private_key(raw: str) -> bytes:
    text = raw.strip()
    if text.startswith(_AIP80_PREFIX):
        text = text[len(_AIP80_PREFIX):]
    if text.startswith(("0x", "0X")):
        text = text[2:]
    try:
        key = bytes.fromhex(text)
    except ValueError as exc:
        raise ConfigurationError("private key is not valid hex") from exc
    if len(key) != 32:
        raise ConfigurationError(f"private key must be 32 bytes, got {len(key)}")
    return key


def derive_address(public_key: bytes) -> str:
    return "0x" + SHA3_256.new(public_key + ED25519_SCHEME).hexdigest()


class Ed25519Signer:
    """An Aptos single-key Ed25519 account."""

    __slots__ = ("_sk", "public_key", "address")

    def __init__(self, private_key: bytes):
        self._sk = SigningKey.from_string(private_key, curve=Ed25519)
        self.public_key: bytes = self._sk.get_verifying_key().to_string()
        self.address: str = derive_address(self.public_key)

    @classmethod
    def from_hex(cls, raw: str) -> Ed25519Signer:
        return cls(_parse_private_key(raw))

    def sign(self, message: bytes) -> bytes:
        """64-byte Ed25519 signature over *message*."""
        return self._sk.sign(message)

    def signature_payload(self, message: bytes) -> dict:
        """The ``signature`` object of a JSON transaction submission."""
        return {
            "type": "ed25519_signature",
            "public_key": "0x" + self.public_key.hex(),
            "signature": "0x" + self.sign(message).hex(),
        }

    def __repr__(self) -> str:
        return f"Ed25519Signer({self.address})"
