from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hsjwt.core.claims import ClaimSet
from hsjwt.core.errors import JWTError
from hsjwt.core.timespan import to_seconds


def _string_or_list(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return value


class _Options(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @classmethod
    def coerce(cls, options: Any = None):
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, Mapping):
            return cls.model_validate(dict(options))
        raise TypeError(f"Options must be a mapping or {cls.__name__}, not {type(options).__name__}")


class SignOptions(_Options):
    use_data: bool = Field(True, alias="useData")
    duration: int = 0
    iss: str | list[str] | None = None
    sub: str | None = None
    aud: str | list[str] | None = None
    jti: str | bool | None = None
    nbf: int | bool | None = None
    exp: int | bool | None = None
    iat: int | bool | None = None
    header: dict[str, Any] | None = None
    alg: str | None = None

    @field_validator("duration", mode="before")
    @classmethod
    def normalize_duration(cls, v: Any) -> int:
        return to_seconds(v)

    @field_validator("iss", "aud", mode="before")
    @classmethod
    def normalize_identity(cls, v: Any) -> Any:
        return _string_or_list(v)

    @field_validator("jti", mode="before")
    @classmethod
    def normalize_jti(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class VerifyOptions(_Options):
    issuer: str | list[str] | None = None
    audience: str | list[str] | None = None
    subject: str | None = None
    clock_tolerance: int | None = Field(None, alias="clockTolerance")
    max_age: int | None = Field(None, alias="maxTokenAge")
    algorithms: list[str] | None = None
    required_claims: list[str] = Field(default_factory=list, alias="requiredClaims")

    @field_validator("clock_tolerance", "max_age", mode="before")
    @classmethod
    def normalize_span(cls, v: Any) -> int | None:
        return None if v is None else to_seconds(v)

    @field_validator("issuer", "audience", mode="before")
    @classmethod
    def normalize_identity(cls, v: Any) -> Any:
        return _string_or_list(v)

    @field_validator("algorithms", "required_claims", mode="before")
    @classmethod
    def normalize_names(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return _string_or_list(v)


class _Result(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    ok: bool
    header: dict[str, Any] | None = None
    error: JWTError | None = None

    @property
    def code(self) -> str | None:
        return None if self.error is None else self.error.code

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class VerifyResult(_Result):
    claims: ClaimSet | None = None

    @classmethod
    def success(cls, header: dict[str, Any], claims: ClaimSet) -> VerifyResult:
        return cls(ok=True, header=header, claims=claims)

    @classmethod
    def failure(cls, error: JWTError) -> VerifyResult:
        return cls(ok=False, error=error)

    def unwrap(self) -> ClaimSet:
        self.raise_for_error()
        return self.claims


class ParseResult(_Result):
    payload: ClaimSet | None = None
    signature: bytes | None = None

    @classmethod
    def success(cls, header: dict[str, Any], payload: ClaimSet, signature: bytes | None) -> ParseResult:
        return cls(ok=True, header=header, payload=payload, signature=signature)

    @classmethod
    def failure(cls, error: JWTError) -> ParseResult:
        return cls(ok=False, error=error)

    @property
    def signed(self) -> bool:
        return self.signature is not None

    def unwrap(self) -> ClaimSet:
        self.raise_for_error()
        return self.payload
