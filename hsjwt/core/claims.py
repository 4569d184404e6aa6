from __future__ import annotations

import json
import secrets
from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator, NamedTuple

from hsjwt.core import base64url
from hsjwt.core.errors import MalformedTokenError

if TYPE_CHECKING:
    from hsjwt.schemas.token import SignOptions

# Backdate applied when the caller asks for nbf=True.
NBF_LEEWAY = 10


class RegisteredClaim(str, Enum):
    ISS = "iss"
    SUB = "sub"
    AUD = "aud"
    EXP = "exp"
    NBF = "nbf"
    IAT = "iat"
    JTI = "jti"


REGISTERED_CLAIMS = frozenset(claim.value for claim in RegisteredClaim)


class ClaimSet(Mapping):
    """Read-only, ordered view over a token payload."""

    __slots__ = ("_claims",)

    def __init__(self, claims: Mapping[str, Any] | None = None):
        self._claims = dict(claims or {})

    def __getitem__(self, name: str) -> Any:
        return self._claims[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __len__(self) -> int:
        return len(self._claims)

    def __repr__(self) -> str:
        return f"ClaimSet({self._claims!r})"

    def to_dict(self) -> dict[str, Any]:
        return json.loads(json.dumps(self._claims))

    def values_of(self, name: str) -> tuple[str, ...]:
        """String values of a claim that may hold one string or a list of them."""
        value = self._claims.get(name)
        if isinstance(value, str):
            return (value,)
        if isinstance(value, list):
            return tuple(item for item in value if isinstance(item, str))
        return ()

    @property
    def issuer(self) -> tuple[str, ...]:
        return self.values_of(RegisteredClaim.ISS.value)

    @property
    def audience(self) -> tuple[str, ...]:
        return self.values_of(RegisteredClaim.AUD.value)

    @property
    def subject(self) -> str | None:
        return self._claims.get(RegisteredClaim.SUB.value)

    @property
    def expires_at(self) -> int | None:
        return self._claims.get(RegisteredClaim.EXP.value)

    @property
    def not_before(self) -> int | None:
        return self._claims.get(RegisteredClaim.NBF.value)

    @property
    def issued_at(self) -> int | None:
        return self._claims.get(RegisteredClaim.IAT.value)

    @property
    def jwt_id(self) -> str | None:
        return self._claims.get(RegisteredClaim.JTI.value)

    @property
    def data(self) -> Any:
        return self._claims.get("data")


class DecodedToken(NamedTuple):
    header: dict[str, Any]
    payload: ClaimSet
    signature: bytes | None
    signing_input: bytes


def generate_jti() -> str:
    return secrets.token_hex(16)


def _issued_at(options: SignOptions, now: int) -> int | None:
    if options.iat is False:
        return None
    if options.iat is None or options.iat is True:
        return now
    return options.iat


def _expiration(options: SignOptions, now: int) -> int | None:
    if options.exp is False:
        return None
    if options.exp is not None and options.exp is not True:
        return options.exp
    if options.duration > 0:
        issued_at = _issued_at(options, now)
        return (now if issued_at is None else issued_at) + options.duration
    return None


def _claim_value(
    claim: RegisteredClaim,
    options: SignOptions,
    now: int,
    default_issuer: str | None,
    default_audience: str | None,
) -> Any:
    if claim is RegisteredClaim.ISS:
        return options.iss if options.iss is not None else default_issuer
    if claim is RegisteredClaim.SUB:
        return options.sub
    if claim is RegisteredClaim.AUD:
        return options.aud if options.aud is not None else default_audience
    if claim is RegisteredClaim.EXP:
        return _expiration(options, now)
    if claim is RegisteredClaim.NBF:
        if options.nbf is None or options.nbf is False:
            return None
        return now - NBF_LEEWAY if options.nbf is True else options.nbf
    if claim is RegisteredClaim.IAT:
        return _issued_at(options, now)
    if claim is RegisteredClaim.JTI:
        if options.jti is None or options.jti is False:
            return None
        return generate_jti() if options.jti is True else options.jti
    raise ValueError(f"Unhandled registered claim {claim!r}")


def build_payload(
    payload: Mapping[str, Any],
    options: SignOptions,
    now: int,
    *,
    default_issuer: str | None = None,
    default_audience: str | None = None,
) -> ClaimSet:
    """Assemble the claim set for signing.

    The user payload comes first (nested under ``data`` when
    ``options.use_data`` is set), followed by the registered claims in
    :class:`RegisteredClaim` order. Registered claims are only taken from
    ``options``; a merged payload carrying one of their names is rejected.
    """
    if payload is None:
        raise TypeError("Payload cannot be None")
    if not isinstance(payload, Mapping):
        raise TypeError(f"Payload must be a mapping, not {type(payload).__name__}")

    if options.use_data:
        claims: dict[str, Any] = {"data": dict(payload)}
    else:
        collisions = sorted(REGISTERED_CLAIMS.intersection(payload))
        if collisions:
            raise ValueError(f"Payload keys {collisions} are registered claims; pass them as options")
        claims = dict(payload)

    for claim in RegisteredClaim:
        value = _claim_value(claim, options, now, default_issuer, default_audience)
        if value is not None:
            claims[claim.value] = value
    return ClaimSet(claims)


def _json_bytes(value: Mapping[str, Any]) -> bytes:
    return json.dumps(value, separators=(",", ":"), allow_nan=False).encode("utf-8")


def serialize(header: Mapping[str, Any], claims: Mapping[str, Any]) -> tuple[bytes, str, str]:
    """Return ``(signing_input, header_segment, payload_segment)``."""
    header_segment = base64url.encode(_json_bytes(header))
    payload_segment = base64url.encode(_json_bytes(dict(claims)))
    return f"{header_segment}.{payload_segment}".encode("ascii"), header_segment, payload_segment


def _unique_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise MalformedTokenError(f"Duplicate JSON member {key!r}", claim=key)
        result[key] = value
    return result


def _decode_object(segment: str, name: str) -> dict[str, Any]:
    raw = base64url.decode(segment)
    try:
        value = json.loads(raw, object_pairs_hook=_unique_keys)
    except (ValueError, RecursionError) as exc:
        raise MalformedTokenError(f"Token {name} is not valid JSON") from exc
    if not isinstance(value, dict):
        raise MalformedTokenError(f"Token {name} is not a JSON object")
    return value


def parse_compact(token: str) -> DecodedToken:
    if not isinstance(token, str):
        raise TypeError(f"Token must be a string, not {type(token).__name__}")
    segments = token.split(".")
    if len(segments) not in (2, 3):
        raise MalformedTokenError(f"Token must have 2 or 3 segments, found {len(segments)}")

    header = _decode_object(segments[0], "header")
    payload = _decode_object(segments[1], "payload")
    signature = None
    if len(segments) == 3 and segments[2]:
        signature = base64url.decode(segments[2])
    signing_input = f"{segments[0]}.{segments[1]}".encode("ascii")
    return DecodedToken(header, ClaimSet(payload), signature, signing_input)
