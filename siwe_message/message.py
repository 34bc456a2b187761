"""Serialization of message parameters to and from the EIP-4361 text format."""

import logging

from .defs import HEADER_SUFFIX
from .errors import ParseError
from .params import SiweMessageParams
from .parsed import ParsedMessage
from .timestamps import datetime_to_iso8601, iso8601_to_datetime

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = ("issued_at", "expiration_time", "not_before")


def create_message(params: SiweMessageParams) -> str:
    """Serialize to the EIP-4361 format for signing.

    It can then be passed to an EIP-191 signing function. The output only
    depends on `params`, the same parameters always give the same text.

    :param params: Validated message parameters.
    :return: EIP-4361 formatted message, ready for EIP-191 signing.
    """
    header = f"{params.domain}{HEADER_SUFFIX}"
    if params.scheme:
        header = f"{params.scheme}://{header}"

    lines = [header, params.address, ""]
    if params.statement:
        lines.extend([params.statement, ""])
    else:
        lines.append("")

    lines.extend(
        [
            f"URI: {params.uri}",
            f"Version: {params.version}",
            f"Chain ID: {params.chain_id}",
            f"Nonce: {params.nonce}",
            f"Issued At: {datetime_to_iso8601(params.issued_at)}",
        ]
    )

    if params.expiration_time is not None:
        lines.append(
            f"Expiration Time: {datetime_to_iso8601(params.expiration_time)}"
        )
    if params.not_before is not None:
        lines.append(f"Not Before: {datetime_to_iso8601(params.not_before)}")
    if params.request_id is not None:
        lines.append(f"Request ID: {params.request_id}")

    if params.resources:
        lines.append("Resources:")
        lines.extend(f"- {resource}" for resource in params.resources)

    return "\n".join(lines)


def parse_message(message: str) -> SiweMessageParams:
    """Parse a message in its EIP-4361 format.

    :raises ParseError: if the text is not an EIP-4361 message.
    :raises InvalidFieldError: if the text is well-formed but a field is not
    valid.
    """
    try:
        fields = ParsedMessage(message).fields()
    except ParseError as e:
        logger.debug("Rejected malformed SIWE message: %s", e)
        raise

    try:
        fields["chain_id"] = int(fields["chain_id"])
    except ValueError as e:
        raise ParseError(f"Invalid `chain_id` value: {e}") from e
    for name in _TIMESTAMP_FIELDS:
        if name in fields:
            try:
                fields[name] = iso8601_to_datetime(fields[name])
            except ValueError as e:
                raise ParseError(f"Invalid `{name}` value: {e}") from e

    return SiweMessageParams(**fields)
