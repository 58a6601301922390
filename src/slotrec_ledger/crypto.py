from __future__ import annotations

import json
from pathlib import Path

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

SEED_LEN = 32
SECRET_KEY_LEN = 64


class Keypair:
    """Ed25519 signer. Addresses on the ledger are raw 32-byte public keys."""

    def __init__(self, signing_key: SigningKey):
        self._sk = signing_key

    @classmethod
    def generate(cls) -> "Keypair":
        return cls(SigningKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        if len(seed) != SEED_LEN:
            raise ValueError(f"seed must be {SEED_LEN} bytes")
        return cls(SigningKey(seed))

    @classmethod
    def from_secret_key(cls, secret: bytes) -> "Keypair":
        """Load the 64-byte [seed | pubkey] form written by common keygen tools."""
        if len(secret) != SECRET_KEY_LEN:
            raise ValueError(f"secret key must be {SECRET_KEY_LEN} bytes")
        kp = cls.from_seed(secret[:SEED_LEN])
        if kp.pubkey != secret[SEED_LEN:]:
            raise ValueError("secret key public half does not match its seed")
        return kp

    @property
    def pubkey(self) -> bytes:
        return bytes(self._sk.verify_key)

    @property
    def secret_key(self) -> bytes:
        return bytes(self._sk) + self.pubkey

    def sign(self, message: bytes) -> bytes:
        return self._sk.sign(message).signature


def verify_ed25519(public_key_bytes: bytes, message: bytes, signature: bytes) -> bool:
    try:
        vk = VerifyKey(public_key_bytes)
        vk.verify(message, signature)
        return True
    except (BadSignatureError, ValueError):
        return False


def parse_secret_key(value: str) -> Keypair:
    """Accept a JSON byte array, a comma list of bytes, or hex (seed or full secret)."""
    trimmed = value.strip()
    if trimmed.startswith("["):
        raw = bytes(json.loads(trimmed))
    elif "," in trimmed:
        raw = bytes(json.loads(f"[{trimmed}]"))
    else:
        raw = bytes.fromhex(trimmed)
    if len(raw) == SEED_LEN:
        return Keypair.from_seed(raw)
    return Keypair.from_secret_key(raw)


def load_keypair(path: Path) -> Keypair:
    return parse_secret_key(Path(path).read_text(encoding="utf-8"))


def save_keypair(kp: Keypair, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(list(kp.secret_key)), encoding="utf-8")
