"""Validated, immutable representation of a SIWE request."""

import secrets
import string
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    AwareDatetime,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    ValidationError,
    model_validator,
)

from .errors import InvalidFieldError
from .timestamps import utc_now
from .validators import DEFAULT_VERSION, FieldValidator

GENERATED_NONCE_LENGTH = 11

_ALPHANUMERICS = string.ascii_letters + string.digits

# Fields for which an explicit None selects the default value
_DEFAULTED_FIELDS = ("issued_at", "nonce", "version")


def generate_nonce() -> str:
    """Generate a cryptographically sound nonce."""
    return "".join(
        secrets.choice(_ALPHANUMERICS) for _ in range(GENERATED_NONCE_LENGTH)
    )


class SiweMessageParams(BaseModel):
    """The fields of a Sign-in with Ethereum (EIP-4361) message.

    Instances are validated once, upon construction, and are immutable
    afterwards. Any construction failure raises :class:`InvalidFieldError`.
    Modified copies made with :meth:`replace` or `model_copy(update=...)` are
    validated again.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    address: str
    """Ethereum address performing the signing, EIP-55 checksummed when
    mixed-case.
    """
    chain_id: StrictInt
    """EIP-155 Chain ID to which the session is bound."""
    domain: str
    """RFC 3986 host, with an optional port, that is requesting the signing."""
    uri: str
    """RFC 3986 URI referring to the resource that is the subject of the signing."""
    issued_at: AwareDatetime = Field(default_factory=utc_now)
    """Time when the message was generated, the current time by default."""
    nonce: str = Field(default_factory=generate_nonce)
    """Randomized token used to prevent replay attacks, at least 8 alphanumeric
    characters. A secure nonce is generated when omitted.
    """
    statement: Optional[str] = None
    """Human-readable assertion that the user will sign, must not contain `\n`."""
    version: str = DEFAULT_VERSION
    """Current version of the message."""
    scheme: Optional[str] = None
    """RFC 3986 URI scheme of the origin of the request."""
    expiration_time: Optional[AwareDatetime] = None
    """Time when the signed authentication message is no longer valid."""
    not_before: Optional[AwareDatetime] = None
    """Time when the signed authentication message will become valid."""
    request_id: Optional[str] = None
    """System-specific identifier that may be used to uniquely refer to the sign-in
    request.
    """
    resources: Optional[Tuple[str, ...]] = None
    """Ordered RFC 3986 URIs the user wishes to have resolved as part of
    authentication by the relying party.
    """

    def __init__(self, **data: Any):
        """Construct and validate the parameters."""
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise InvalidFieldError.from_validation_error(e) from None

    @model_validator(mode="before")
    @classmethod
    def fill_defaults(cls, data: Any) -> Any:
        """Drop explicit None values of the fields that have a default."""
        if isinstance(data, dict):
            data = {
                key: value
                for key, value in data.items()
                if not (key in _DEFAULTED_FIELDS and value is None)
            }
        return data

    @model_validator(mode="after")
    def check_fields(self) -> "SiweMessageParams":
        """Check every field invariant at once."""
        FieldValidator.validate_or_fail(self)
        return self

    def replace(self, **changes: Any) -> "SiweMessageParams":
        """Return a new, validated instance with the given fields changed."""
        return type(self)(**{**self.model_dump(), **changes})

    def model_copy(
        self, *, update: Optional[Dict[str, Any]] = None, deep: bool = False
    ) -> "SiweMessageParams":
        """Return a copy, validated again when `update` changes any field."""
        if update:
            return self.replace(**update)
        return super().model_copy(deep=deep)
