"""Field and time-window validation of SIWE messages."""

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import abnf
from eth_utils import is_checksum_address, is_checksum_formatted_address

from .defs import ADDRESS, NONCE
from .errors import InvalidFieldError, TimeValidationError
from .grammars import eip4361
from .timestamps import datetime_to_iso8601, utc_now

if TYPE_CHECKING:
    from .params import SiweMessageParams

DEFAULT_VERSION = "1"
NONCE_MIN_LENGTH = 8

_LINE_BREAKS = ("\n", "\r")


def _matches_rule(rule: str, value: str) -> bool:
    try:
        eip4361.Rule(rule).parse_all(value)
    except abnf.ParseError:
        return False
    return True


def _has_line_break(value: str) -> bool:
    return any(char in value for char in _LINE_BREAKS)


def _check_address(value: str, params: "SiweMessageParams") -> List[str]:
    if not re.fullmatch(ADDRESS, value):
        return ["Must be a 0x-prefixed string of 40 hexadecimal digits"]
    # All-lowercase and all-uppercase addresses carry no EIP-55 checksum
    if is_checksum_formatted_address(value) and not is_checksum_address(value):
        return ["Mixed-case address must be a valid EIP-55 checksum address"]
    return []


def _check_chain_id(value: int, params: "SiweMessageParams") -> List[str]:
    if value < 1:
        return ["Must be a positive integer"]
    return []


def _check_domain(value: str, params: "SiweMessageParams") -> List[str]:
    if not value:
        return ["Must not be empty"]
    # An RFC 3986 reg-name may be empty, a domain host may not
    if value.startswith(":") or not _matches_rule("domain", value):
        return ["Must be an RFC 3986 host with an optional port"]
    return []


def _check_uri(value: str, params: "SiweMessageParams") -> List[str]:
    if not _matches_rule("uri", value):
        return ["Must be an RFC 3986 URI"]
    return []


def _check_nonce(value: str, params: "SiweMessageParams") -> List[str]:
    conditions = []
    if len(value) < NONCE_MIN_LENGTH:
        conditions.append(f"Must be at least {NONCE_MIN_LENGTH} characters long")
    if not re.fullmatch(NONCE, value):
        conditions.append("Must contain only ASCII letters and digits")
    return conditions


def _check_statement(value: str, params: "SiweMessageParams") -> List[str]:
    conditions = []
    if not value:
        conditions.append("Must not be empty when set")
    if _has_line_break(value):
        conditions.append("Must not contain a line break")
    return conditions


def _check_version(value: str, params: "SiweMessageParams") -> List[str]:
    if value != DEFAULT_VERSION:
        return [f'Must be "{DEFAULT_VERSION}"']
    return []


def _check_scheme(value: str, params: "SiweMessageParams") -> List[str]:
    if not value or not _matches_rule("uri-scheme", value):
        return ["Must be an RFC 3986 URI scheme"]
    return []


def _check_not_before(value: datetime, params: "SiweMessageParams") -> List[str]:
    if params.expiration_time is not None and value > params.expiration_time:
        return ["Must not be later than the expiration time"]
    return []


def _check_request_id(value: str, params: "SiweMessageParams") -> List[str]:
    conditions = []
    if _has_line_break(value):
        conditions.append("Must not contain a line break")
    elif value and not _matches_rule("request-id", value):
        conditions.append("Must contain only RFC 3986 path characters")
    return conditions


def _check_resources(value: tuple, params: "SiweMessageParams") -> List[str]:
    if not value:
        return ["Must contain at least one resource when set"]
    return [
        f"Resource #{index} must be an RFC 3986 URI"
        for index, resource in enumerate(value, start=1)
        if _has_line_break(resource) or not _matches_rule("resource", resource)
    ]


class FieldValidator:
    """Constraints every message field must satisfy upon construction."""

    rules: Dict[str, Callable[[Any, "SiweMessageParams"], List[str]]] = {
        "address": _check_address,
        "chain_id": _check_chain_id,
        "domain": _check_domain,
        "uri": _check_uri,
        "nonce": _check_nonce,
        "statement": _check_statement,
        "version": _check_version,
        "scheme": _check_scheme,
        "not_before": _check_not_before,
        "request_id": _check_request_id,
        "resources": _check_resources,
    }

    @classmethod
    def violations(cls, params: "SiweMessageParams") -> Dict[str, List[str]]:
        """Collect the violated conditions of every field, in field order."""
        result = {}
        for field in type(params).model_fields:
            value = getattr(params, field)
            rule = cls.rules.get(field)
            if rule is None or value is None:
                continue
            conditions = rule(value, params)
            if conditions:
                result[field] = conditions
        return result

    @classmethod
    def validate_or_fail(cls, params: "SiweMessageParams") -> None:
        """Raise an InvalidFieldError for the first field that is not valid."""
        violations = cls.violations(params)
        if violations:
            field, conditions = next(iter(violations.items()))
            raise InvalidFieldError(field, getattr(params, field), conditions)


class TimeValidator:
    """Validity window checks performed when verifying a message."""

    @staticmethod
    def violations(
        params: "SiweMessageParams", now: Optional[datetime] = None
    ) -> List[str]:
        """List the temporal conditions violated at `now`."""
        if now is None:
            now = utc_now()
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        conditions = []
        if params.issued_at is None:
            conditions.append("Issued At is not set")
        if params.not_before is not None and now < params.not_before:
            conditions.append(
                "Message is not valid before "
                f"{datetime_to_iso8601(params.not_before)}"
            )
        if params.expiration_time is not None and now >= params.expiration_time:
            conditions.append(
                f"Message expired at {datetime_to_iso8601(params.expiration_time)}"
            )
        return conditions

    @classmethod
    def validate_or_fail(
        cls, params: "SiweMessageParams", now: Optional[datetime] = None
    ) -> None:
        """Raise a TimeValidationError listing every violated condition."""
        conditions = cls.violations(params, now)
        if conditions:
            raise TimeValidationError(conditions)
