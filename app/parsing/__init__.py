"""Parsing package: amount normalization, parser rules, and the rule-based email extractor."""

from .amount import parse_amount  # noqa: F401
from .extractor import extract_transaction, html_to_text  # noqa: F401
from .rules import DEFAULT_RULES, ParserRule, load_rules  # noqa: F401
