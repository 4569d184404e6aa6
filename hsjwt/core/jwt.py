"""Token engine: issues, verifies and inspects HS* compact JWTs.

Verification runs its checks in a fixed order and stops at the first
failure: token shape, header algorithm, signature, time claims
(``exp``, ``nbf``, optional ``max_age``), then identity claims
(required claims, ``iss``, ``aud``, ``sub``). Each failure is a distinct
:class:`~hsjwt.core.errors.JWTError` subclass.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Callable

from hsjwt.core import base64url
from hsjwt.core import signature as hmac_signature
from hsjwt.core.claims import ClaimSet, DecodedToken, build_payload, parse_compact, serialize
from hsjwt.core.config import Settings, get_settings
from hsjwt.core.errors import (
    ClaimMismatchError,
    ExpiredError,
    JWTError,
    MalformedTokenError,
    NotYetValidError,
    SignatureMismatchError,
    UnsupportedAlgorithmError,
)
from hsjwt.core.signature import Algorithm, KeyMaterial, derive_key, resolve_algorithm
from hsjwt.schemas.token import ParseResult, SignOptions, VerifyOptions, VerifyResult

logger = logging.getLogger(__name__)

Secret = str | bytes | KeyMaterial


def _numeric_claim(claims: ClaimSet, name: str) -> int | float | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ClaimMismatchError(f'"{name}" claim must be a number', claim=name)
    return value


def _match_identity(claims: ClaimSet, name: str, expected: str | list[str] | None) -> None:
    if expected is None:
        return
    if name not in claims:
        raise ClaimMismatchError(f'Missing "{name}" claim', claim=name)
    accepted = {expected} if isinstance(expected, str) else set(expected)
    if accepted.isdisjoint(claims.values_of(name)):
        raise ClaimMismatchError(f'Unexpected "{name}" claim value', claim=name)


class TokenEngine:
    def __init__(self, settings: Settings | None = None, clock: Callable[[], float] = time.time):
        self.settings = settings or get_settings()
        self.clock = clock

    def now(self) -> int:
        return int(self.clock())

    def _resolve_key(self, secret: Secret | None, algorithm: Algorithm) -> KeyMaterial:
        if secret is None:
            secret = self.settings.jwt_secret_key.get_secret_value()
        return derive_key(secret, algorithm, legacy_padding=self.settings.jwt_legacy_padding)

    @staticmethod
    def _release(key: KeyMaterial, secret: Secret | None) -> None:
        # Caller-owned key material is left untouched.
        if key is not secret:
            key.wipe()

    def _header(self, options: SignOptions) -> dict[str, Any]:
        requested = dict(options.header or {})
        name = requested.get("alg", options.alg)
        algorithm = self.settings.jwt_algorithm if name is None else resolve_algorithm(name)
        typ = requested.get("typ", "JWT")
        if not isinstance(typ, str):
            raise TypeError("Header typ must be a string")
        return {"alg": algorithm.value, "typ": typ}

    def sign(
        self,
        payload: Mapping[str, Any],
        options: SignOptions | Mapping[str, Any] | None = None,
        secret: Secret | None = None,
    ) -> str:
        opts = SignOptions.coerce(options)
        header = self._header(opts)
        algorithm = Algorithm(header["alg"])
        claims = build_payload(
            payload,
            opts,
            self.now(),
            default_issuer=self.settings.jwt_issuer,
            default_audience=self.settings.jwt_audience,
        )
        signing_input, header_segment, payload_segment = serialize(header, claims)

        key = self._resolve_key(secret, algorithm)
        try:
            digest = hmac_signature.sign(signing_input, key, algorithm)
        finally:
            self._release(key, secret)

        logger.debug(f"Signed {algorithm.value} token with claims {sorted(claims)}")
        return f"{header_segment}.{payload_segment}.{base64url.encode(digest)}"

    def _accepted_algorithm(self, header: dict[str, Any], options: VerifyOptions) -> Algorithm:
        algorithm = resolve_algorithm(header.get("alg"))
        if options.algorithms is not None and algorithm.value not in options.algorithms:
            raise UnsupportedAlgorithmError(f"Algorithm {algorithm.value} is not allowed")
        return algorithm

    def _check_signature(self, decoded: DecodedToken, algorithm: Algorithm, secret: Secret | None) -> None:
        if decoded.signature is None:
            raise MalformedTokenError("Token has no signature segment")
        key = self._resolve_key(secret, algorithm)
        try:
            valid = hmac_signature.verify(decoded.signing_input, decoded.signature, key, algorithm)
        finally:
            self._release(key, secret)
        if not valid:
            raise SignatureMismatchError("Signature verification failed")

    def _check_times(self, claims: ClaimSet, options: VerifyOptions) -> None:
        now = self.now()
        tolerance = options.clock_tolerance
        if tolerance is None:
            tolerance = self.settings.jwt_clock_tolerance

        exp = _numeric_claim(claims, "exp")
        nbf = _numeric_claim(claims, "nbf")

        if exp is not None and not exp > now - tolerance:
            raise ExpiredError("Token has expired", claim="exp")
        if nbf is not None and not nbf <= now + tolerance:
            raise NotYetValidError("Token is not valid yet", claim="nbf")
        if options.max_age is not None:
            iat = _numeric_claim(claims, "iat")
            if iat is None:
                raise ClaimMismatchError('Missing "iat" claim', claim="iat")
            if now - iat > options.max_age + tolerance:
                raise ExpiredError("Token exceeds the maximum age", claim="iat")

    def _check_identity(self, claims: ClaimSet, options: VerifyOptions) -> None:
        for name in options.required_claims:
            if name not in claims:
                raise ClaimMismatchError(f'Missing required "{name}" claim', claim=name)
        issuer = options.issuer if options.issuer is not None else self.settings.jwt_issuer
        audience = options.audience if options.audience is not None else self.settings.jwt_audience
        _match_identity(claims, "iss", issuer)
        _match_identity(claims, "aud", audience)
        _match_identity(claims, "sub", options.subject)

    def _verified(self, token: str, options: VerifyOptions, secret: Secret | None) -> DecodedToken:
        decoded = parse_compact(token)
        algorithm = self._accepted_algorithm(decoded.header, options)
        self._check_signature(decoded, algorithm, secret)
        self._check_times(decoded.payload, options)
        self._check_identity(decoded.payload, options)
        return decoded

    def decode(
        self,
        token: str,
        options: VerifyOptions | Mapping[str, Any] | None = None,
        secret: Secret | None = None,
    ) -> ClaimSet:
        """Verify ``token`` and return its claims, raising a ``JWTError`` subclass on failure."""
        return self._verified(token, VerifyOptions.coerce(options), secret).payload

    def verify(
        self,
        token: str,
        options: VerifyOptions | Mapping[str, Any] | None = None,
        secret: Secret | None = None,
    ) -> VerifyResult:
        """Verify ``token``; expected failures come back inside the result."""
        opts = VerifyOptions.coerce(options)
        try:
            decoded = self._verified(token, opts, secret)
        except JWTError as exc:
            logger.info(f"Token rejected: {exc.code} ({exc.message})")
            return VerifyResult.failure(exc)
        return VerifyResult.success(decoded.header, decoded.payload)

    def parse(self, token: str) -> ParseResult:
        """Decode ``token`` without checking its signature or claims.

        For inspection only; never use the result to authorize access.
        """
        try:
            decoded = parse_compact(token)
        except JWTError as exc:
            logger.info(f"Token could not be parsed: {exc.code} ({exc.message})")
            return ParseResult.failure(exc)
        return ParseResult.success(decoded.header, decoded.payload, decoded.signature)
