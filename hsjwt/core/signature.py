"""HMAC signing and verification for the HS* family.

Raw string secrets go through :func:`derive_key`, which by default writes
the UTF-8 bytes of the passphrase into a zero-filled 64-byte buffer,
truncating longer passphrases. This is a fixed padding scheme kept for
compatibility with tokens issued by earlier signers, not a key-derivation
function: it adds no salt and no stretching. Because HMAC itself zero-pads
keys shorter than the hash block size, the padded key produces the same MAC
as the (possibly truncated) passphrase would.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
from enum import Enum
from typing import Any, Callable

from hsjwt.core.errors import UnsupportedAlgorithmError


class Algorithm(str, Enum):
    HS256 = "HS256"
    HS384 = "HS384"
    HS512 = "HS512"

    @property
    def hash(self) -> Callable[..., Any]:
        if self is Algorithm.HS256:
            return hashlib.sha256
        if self is Algorithm.HS384:
            return hashlib.sha384
        return hashlib.sha512

    @property
    def key_length(self) -> int:
        return self.hash().digest_size


def resolve_algorithm(name: object) -> Algorithm:
    if isinstance(name, Algorithm):
        return name
    if not isinstance(name, str) or name.lower() == "none":
        raise UnsupportedAlgorithmError(f"Algorithm {name!r} is not accepted")
    try:
        return Algorithm(name)
    except ValueError as exc:
        raise UnsupportedAlgorithmError(f"Algorithm {name!r} is not supported") from exc


class KeyMaterial:
    """Symmetric key bytes. Never printed, and can be zeroed after use."""

    __slots__ = ("_buffer",)

    def __init__(self, value: bytes | bytearray):
        if not value:
            raise ValueError("Key material cannot be empty")
        self._buffer = bytearray(value)

    @classmethod
    def generate(cls, algorithm: Algorithm | str = Algorithm.HS512) -> KeyMaterial:
        return cls(secrets.token_bytes(resolve_algorithm(algorithm).key_length))

    def __bytes__(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyMaterial):
            return NotImplemented
        return hmac.compare_digest(bytes(self._buffer), bytes(other._buffer))

    def __repr__(self) -> str:
        return f"KeyMaterial(<{len(self._buffer)} bytes>)"

    def wipe(self) -> None:
        for i in range(len(self._buffer)):
            self._buffer[i] = 0


# Buffer size used by earlier signers for every HS* algorithm.
LEGACY_KEY_LENGTH = 64


def derive_key(
    secret: str | bytes | KeyMaterial,
    algorithm: Algorithm | str = Algorithm.HS512,
    *,
    legacy_padding: bool = True,
) -> KeyMaterial:
    """Turn a secret into key material.

    With ``legacy_padding`` a passphrase is written into a 64-byte zero
    buffer and anything past 64 bytes is dropped (never splitting a UTF-8
    character), which reproduces the keys of previously issued tokens.
    Without it the passphrase is padded to the algorithm's key length and
    kept whole.
    """
    if isinstance(secret, KeyMaterial):
        return secret
    if isinstance(secret, (bytes, bytearray)):
        return KeyMaterial(secret)
    if not isinstance(secret, str):
        raise TypeError(f"Secret must be str, bytes or KeyMaterial, not {type(secret).__name__}")
    if not secret:
        raise ValueError("Secret cannot be empty")
    alg = resolve_algorithm(algorithm)
    raw = secret.encode("utf-8")
    if legacy_padding:
        if len(raw) > LEGACY_KEY_LENGTH:
            raw = raw[:LEGACY_KEY_LENGTH].decode("utf-8", errors="ignore").encode("utf-8")
        size = LEGACY_KEY_LENGTH
    else:
        size = max(alg.key_length, len(raw))
    buffer = bytearray(size)
    buffer[: len(raw)] = raw
    key = KeyMaterial(buffer)
    for i in range(len(buffer)):
        buffer[i] = 0
    return key


def sign(signing_input: bytes, key: KeyMaterial, algorithm: Algorithm | str) -> bytes:
    alg = resolve_algorithm(algorithm)
    return hmac.new(bytes(key), signing_input, alg.hash).digest()


def verify(signing_input: bytes, signature: bytes, key: KeyMaterial, algorithm: Algorithm | str) -> bool:
    alg = resolve_algorithm(algorithm)
    expected = hmac.new(bytes(key), signing_input, alg.hash).digest()
    return hmac.compare_digest(expected, signature)
