from __future__ import annotations


class JWTError(Exception):
    """Base class for every token failure.

    ``code`` is stable and meant for callers that branch on the failure
    kind; ``claim`` names the offending claim when there is one.
    """

    code = "JWT_ERROR"

    def __init__(self, message: str, *, claim: str | None = None):
        super().__init__(message)
        self.message = message
        self.claim = claim

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class DecodeError(JWTError):
    """Segment is not valid unpadded base64url."""

    code = "DECODE_ERROR"


class MalformedTokenError(JWTError):
    """Wrong segment count, or header/payload is not a JSON object."""

    code = "MALFORMED_TOKEN"


class UnsupportedAlgorithmError(JWTError):
    """Algorithm is ``none``, unknown, or not allowed by the caller."""

    code = "UNSUPPORTED_ALGORITHM"


class SignatureMismatchError(JWTError):
    code = "SIGNATURE_MISMATCH"


class ExpiredError(JWTError):
    code = "EXPIRED"


class NotYetValidError(JWTError):
    code = "NOT_YET_VALID"


class ClaimMismatchError(JWTError):
    """Identity claim mismatch, or a required claim is missing or mistyped."""

    code = "CLAIM_MISMATCH"
