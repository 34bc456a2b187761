"""SIWE message parser."""

import re
from typing import Dict, List, Optional

from . import defs
from .errors import ParseError


class LineMatcher:
    """Match a whole line of a message and capture its named values."""

    def __init__(self, name: str, pattern: str):
        """Create a matcher for the line called `name` in error messages."""
        self.name = name
        self.expr = re.compile(pattern)

    def match(self, line: str) -> Optional[Dict[str, Optional[str]]]:
        """Return the captured values if `line` matches entirely, else None."""
        match = self.expr.fullmatch(line)
        if not match:
            return None
        return match.groupdict()

    def __repr__(self):
        """Represent the matcher by its line name."""
        return f"LineMatcher({self.name!r})"


HEADER = LineMatcher("header", defs.HEADER_LINE)
ADDRESS = LineMatcher("address", defs.ADDRESS_LINE)
BLANK = LineMatcher("blank line", defs.BLANK_LINE)
STATEMENT = LineMatcher("statement", defs.STATEMENT_LINE)
URI = LineMatcher("URI", defs.URI_LINE)
VERSION = LineMatcher("Version", defs.VERSION_LINE)
CHAIN_ID = LineMatcher("Chain ID", defs.CHAIN_ID_LINE)
NONCE = LineMatcher("Nonce", defs.NONCE_LINE)
ISSUED_AT = LineMatcher("Issued At", defs.ISSUED_AT_LINE)
EXPIRATION_TIME = LineMatcher("Expiration Time", defs.EXPIRATION_TIME_LINE)
NOT_BEFORE = LineMatcher("Not Before", defs.NOT_BEFORE_LINE)
REQUEST_ID = LineMatcher("Request ID", defs.REQUEST_ID_LINE)
RESOURCES = LineMatcher("Resources", defs.RESOURCES_LINE)
RESOURCE = LineMatcher("resource", defs.RESOURCE_LINE)

FIXED_FIELDS = (URI, VERSION, CHAIN_ID, NONCE, ISSUED_AT)
OPTIONAL_FIELDS = (EXPIRATION_TIME, NOT_BEFORE, REQUEST_ID)


class ParsedMessage:
    """Line-oriented parse of a SIWE message into its raw string values.

    The message is read top to bottom and every line has to be accepted by the
    matcher expected at that position, so no value is ever captured from the
    wrong line. The statement is recognised by position only: it is the single
    line between the blank line after the address and the blank line before
    `URI:`.
    """

    def __init__(self, message: str):
        """Parse a SIWE message."""
        self.scheme: Optional[str] = None
        self.domain: Optional[str] = None
        self.address: Optional[str] = None
        self.statement: Optional[str] = None
        self.uri: Optional[str] = None
        self.version: Optional[str] = None
        self.chain_id: Optional[str] = None
        self.nonce: Optional[str] = None
        self.issued_at: Optional[str] = None
        self.expiration_time: Optional[str] = None
        self.not_before: Optional[str] = None
        self.request_id: Optional[str] = None
        self.resources: Optional[List[str]] = None

        self._lines = message.split("\n")
        self._cursor = 0
        self._parse()

    def _parse(self) -> None:
        self._expect(HEADER)
        self._expect(ADDRESS)
        self._expect(BLANK)
        if self._accept(BLANK) is None:
            self._expect(STATEMENT)
            self._expect(BLANK)

        for matcher in FIXED_FIELDS:
            self._expect(matcher)
        for matcher in OPTIONAL_FIELDS:
            self._accept(matcher)

        if self._accept(RESOURCES) is not None:
            self.resources = []
            self._expect(RESOURCE)
            while self._accept(RESOURCE) is not None:
                pass

        if self._cursor < len(self._lines):
            raise ParseError(
                "Unexpected line after the end of the message", self._line_number
            )

    @property
    def _line_number(self) -> int:
        return self._cursor + 1

    def _accept(self, matcher: LineMatcher) -> Optional[Dict[str, Optional[str]]]:
        if self._cursor >= len(self._lines):
            return None
        values = matcher.match(self._lines[self._cursor])
        if values is None:
            return None

        self._cursor += 1
        for name, value in values.items():
            if name == "resource":
                self.resources.append(value)
            else:
                setattr(self, name, value)
        return values

    def _expect(self, matcher: LineMatcher) -> Dict[str, Optional[str]]:
        values = self._accept(matcher)
        if values is None:
            if self._cursor >= len(self._lines):
                raise ParseError(
                    f"Unexpected end of message, expected {matcher.name}",
                    self._line_number,
                )
            raise ParseError(f"Expected {matcher.name}", self._line_number)
        return values

    def fields(self) -> Dict[str, object]:
        """Return the captured values, leaving out the absent ones."""
        return {
            name: value
            for name, value in vars(self).items()
            if not name.startswith("_") and value is not None
        }
