"""Field-level ABNF definitions from EIP-4361."""

from typing import ClassVar, List

from abnf.grammars import rfc3986
from abnf.grammars.misc import load_grammar_rules
from abnf.parser import Rule as _Rule


@load_grammar_rules(
    [
        # RFC 3986
        ("URI", rfc3986.Rule("URI")),
        ("host", rfc3986.Rule("host")),
        ("scheme", rfc3986.Rule("scheme")),
        ("pchar", rfc3986.Rule("pchar")),
    ]
)
class Rule(_Rule):
    """Rules from EIP-4361 used to validate single field values."""

    grammar: ClassVar[List] = [
        'domain = host [ ":" 1*5DIGIT ]',
        "uri = URI",
        "uri-scheme = scheme",
        "request-id = *pchar",
        "resource = URI",
    ]
