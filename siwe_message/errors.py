"""Exceptions raised while building, parsing and verifying messages."""

from typing import Any, Iterable, List, Optional

from pydantic import ValidationError


class SiweError(Exception):
    """Top-level exception of the library."""

    pass


class InvalidFieldError(SiweError):
    """A message field does not satisfy its constraints."""

    def __init__(self, field: str, value: Any, conditions: Iterable[str]):
        """Construct the exception from the field and its violated conditions."""
        self.field = field
        self.value = value
        self.conditions: List[str] = list(conditions)

        message = f'Invalid Sign-In with Ethereum message field "{field}".\n'
        for condition in self.conditions:
            message += f"\n- {condition}"
        message += f"\n\nProvided value: {'' if value is None else value}"
        super().__init__(message)

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "InvalidFieldError":
        """Report the first offending field of a pydantic validation error."""
        details = error.errors()
        first = details[0]
        field = _field_of(first)
        conditions = [
            "Required field is not set" if detail["type"] == "missing" else detail["msg"]
            for detail in details
            if _field_of(detail) == field
        ]
        value = None if first["type"] == "missing" else first.get("input")
        return cls(field, value, conditions)


def _field_of(detail) -> str:
    return str(detail["loc"][0]) if detail["loc"] else "__root__"


class ParseError(SiweError):
    """The text does not follow the EIP-4361 message format."""

    def __init__(self, reason: str, line_number: Optional[int] = None):
        """Construct the exception, pointing at the 1-based offending line."""
        self.reason = reason
        self.line_number = line_number
        if line_number is not None:
            reason = f"Line {line_number}: {reason}"
        super().__init__(reason)


class VerificationError(SiweError):
    """Top-level verification exception."""

    pass


class TimeValidationError(VerificationError):
    """The message is outside of its validity window."""

    def __init__(self, conditions: Iterable[str]):
        """Construct the exception with every violated temporal condition."""
        self.conditions: List[str] = list(conditions)
        super().__init__("; ".join(self.conditions))


class SignatureError(VerificationError):
    """The signature does not match the message."""

    pass


class SchemeMismatch(VerificationError):
    """The message does not contain the expected scheme."""

    pass


class DomainMismatch(VerificationError):
    """The message does not contain the expected domain."""

    pass


class NonceMismatch(VerificationError):
    """The message does not contain the expected nonce."""

    pass
