"""ABNF grammars used for field validation."""
