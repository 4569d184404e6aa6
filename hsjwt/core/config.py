from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hsjwt.core.errors import UnsupportedAlgorithmError
from hsjwt.core.signature import Algorithm, resolve_algorithm


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    app_name: str = "hsjwt"
    app_version: str = "0.1.0"
    jwt_algorithm: Algorithm = Algorithm.HS512
    jwt_secret_key: SecretStr = SecretStr("secret")
    jwt_issuer: str | None = None
    jwt_audience: str | None = None
    jwt_clock_tolerance: int = 0
    jwt_legacy_padding: bool = True

    @field_validator("jwt_algorithm", mode="before")
    @classmethod
    def validate_algorithm(cls, v: object) -> Algorithm:
        try:
            return resolve_algorithm(v)
        except UnsupportedAlgorithmError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("JWT secret cannot be empty")
        return v

    @field_validator("jwt_clock_tolerance")
    @classmethod
    def validate_tolerance(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Clock tolerance cannot be negative")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
