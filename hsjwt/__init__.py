"""HMAC-signed JSON Web Tokens.

Module-level helpers use an engine configured from the process settings;
build a :class:`TokenEngine` directly to inject other settings or a clock.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Mapping

from hsjwt.core.claims import ClaimSet, RegisteredClaim
from hsjwt.core.config import Settings, get_settings
from hsjwt.core.errors import (
    ClaimMismatchError,
    DecodeError,
    ExpiredError,
    JWTError,
    MalformedTokenError,
    NotYetValidError,
    SignatureMismatchError,
    UnsupportedAlgorithmError,
)
from hsjwt.core.jwt import Secret, TokenEngine
from hsjwt.core.signature import Algorithm, KeyMaterial, derive_key
from hsjwt.schemas.token import ParseResult, SignOptions, VerifyOptions, VerifyResult


@lru_cache
def get_engine() -> TokenEngine:
    return TokenEngine(get_settings())


def sign(payload: Mapping[str, Any], options: SignOptions | Mapping[str, Any] | None = None, secret: Secret | None = None) -> str:
    return get_engine().sign(payload, options, secret)


def verify(token: str, options: VerifyOptions | Mapping[str, Any] | None = None, secret: Secret | None = None) -> VerifyResult:
    return get_engine().verify(token, options, secret)


def decode(token: str, options: VerifyOptions | Mapping[str, Any] | None = None, secret: Secret | None = None) -> ClaimSet:
    return get_engine().decode(token, options, secret)


def parse(token: str) -> ParseResult:
    return get_engine().parse(token)


__all__ = [
    "Algorithm",
    "ClaimMismatchError",
    "ClaimSet",
    "DecodeError",
    "ExpiredError",
    "JWTError",
    "KeyMaterial",
    "MalformedTokenError",
    "NotYetValidError",
    "ParseResult",
    "RegisteredClaim",
    "SignOptions",
    "SignatureMismatchError",
    "Settings",
    "TokenEngine",
    "UnsupportedAlgorithmError",
    "VerifyOptions",
    "VerifyResult",
    "decode",
    "derive_key",
    "get_engine",
    "get_settings",
    "parse",
    "sign",
    "verify",
]
