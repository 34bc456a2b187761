"""Regexes for the lines of a message and the values they carry."""

SCHEME = "[a-zA-Z][a-zA-Z0-9\\+\\-\\.]*"
ADDRESS = "0x[a-fA-F0-9]{40}"
NONCE = "[a-zA-Z0-9]*"
DATETIME = (
    "(?P<year>[0-9]{4})-(?P<month>0[1-9]|1[012])-(?P<day>0[1-9]|[12][0-9]|3[01])T"
    "(?P<hour>[01][0-9]|2[0-3]):(?P<minute>[0-5][0-9]):(?P<second>[0-5][0-9])"
    "\\.(?P<fraction>[0-9]+)Z"
)

HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"
HEADER_LINE = f"((?P<scheme>{SCHEME})://)?(?P<domain>[^/?#\\s]+){HEADER_SUFFIX}"
ADDRESS_LINE = f"(?P<address>{ADDRESS})"
BLANK_LINE = ""
STATEMENT_LINE = "(?P<statement>.+)"
URI_LINE = "URI: (?P<uri>.+)"
VERSION_LINE = "Version: (?P<version>.+)"
CHAIN_ID_LINE = "Chain ID: (?P<chain_id>-?[0-9]+)"
NONCE_LINE = "Nonce: (?P<nonce>.+)"
ISSUED_AT_LINE = "Issued At: (?P<issued_at>.+)"
EXPIRATION_TIME_LINE = "Expiration Time: (?P<expiration_time>.+)"
NOT_BEFORE_LINE = "Not Before: (?P<not_before>.+)"
REQUEST_ID_LINE = "Request ID: (?P<request_id>.*)"
RESOURCES_LINE = "Resources:"
RESOURCE_LINE = "- (?P<resource>.+)"
