"""Fluent construction of message parameters."""

from datetime import datetime
from typing import Callable, Iterable, List

from .errors import InvalidFieldError
from .params import SiweMessageParams, generate_nonce
from .timestamps import utc_now

REQUIRED_FIELDS = ("address", "chain_id", "domain", "uri")


class SiweMessageParamsBuilder:
    """Accumulate message fields and validate them all at once in `build()`.

    A builder is a mutable, single-owner object; the parameters it builds are
    immutable and can be shared freely.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        nonce_generator: Callable[[], str] = generate_nonce,
    ):
        """Create an empty builder.

        :param clock: Source of the default `issued_at` value.
        :param nonce_generator: Source of the default `nonce` value.
        """
        self._clock = clock
        self._nonce_generator = nonce_generator
        self._fields = {}

    def _set(self, field: str, value) -> "SiweMessageParamsBuilder":
        self._fields[field] = value
        return self

    def with_address(self, address: str) -> "SiweMessageParamsBuilder":
        """Set the Ethereum address performing the signing."""
        return self._set("address", address)

    def with_chain_id(self, chain_id: int) -> "SiweMessageParamsBuilder":
        """Set the chain ID (1 for Ethereum mainnet)."""
        return self._set("chain_id", chain_id)

    def with_domain(self, domain: str) -> "SiweMessageParamsBuilder":
        """Set the domain that is requesting the signing."""
        return self._set("domain", domain)

    def with_uri(self, uri: str) -> "SiweMessageParamsBuilder":
        """Set the URI referring to the resource that is the subject of the signing."""
        return self._set("uri", uri)

    def with_issued_at(self, issued_at: datetime) -> "SiweMessageParamsBuilder":
        """Set the time when the message was generated."""
        return self._set("issued_at", issued_at)

    def with_nonce(self, nonce: str) -> "SiweMessageParamsBuilder":
        """Set the nonce, at least 8 alphanumeric characters."""
        return self._set("nonce", nonce)

    def with_statement(self, statement: str) -> "SiweMessageParamsBuilder":
        """Set the human-readable assertion, which must not include `\\n`."""
        return self._set("statement", statement)

    def with_version(self, version: str) -> "SiweMessageParamsBuilder":
        """Set the message version, which must be `1`."""
        return self._set("version", version)

    def with_scheme(self, scheme: str) -> "SiweMessageParamsBuilder":
        """Set the URI scheme of the origin of the request."""
        return self._set("scheme", scheme)

    def with_expiration_time(
        self, expiration_time: datetime
    ) -> "SiweMessageParamsBuilder":
        """Set the time when the message is no longer valid."""
        return self._set("expiration_time", expiration_time)

    def with_not_before(self, not_before: datetime) -> "SiweMessageParamsBuilder":
        """Set the time when the message will become valid."""
        return self._set("not_before", not_before)

    def with_request_id(self, request_id: str) -> "SiweMessageParamsBuilder":
        """Set the system-specific identifier of the sign-in request."""
        return self._set("request_id", request_id)

    def with_resources(self, resources: Iterable[str]) -> "SiweMessageParamsBuilder":
        """Set the ordered list of resources."""
        return self._set("resources", tuple(resources))

    def missing_fields(self) -> List[str]:
        """List the required fields that have not been set yet."""
        return [
            field for field in REQUIRED_FIELDS if self._fields.get(field) is None
        ]

    def build(self) -> SiweMessageParams:
        """Validate the accumulated fields and create the parameters.

        :raises InvalidFieldError: if a required field is missing or any field
        is invalid.
        """
        missing = self.missing_fields()
        if missing:
            raise InvalidFieldError(missing[0], None, ["Required field is not set"])

        fields = dict(self._fields)
        if fields.get("issued_at") is None:
            fields["issued_at"] = self._clock()
        if fields.get("nonce") is None:
            fields["nonce"] = self._nonce_generator()
        return SiweMessageParams(**fields)
