"""Rule-based extraction of transactions from bank notification emails."""

import re
from collections.abc import Sequence
from datetime import datetime

from bs4 import BeautifulSoup, NavigableString

from app.core.models import ParsedTransaction
from app.core.utils import get_logger
from app.parsing.amount import parse_amount
from app.parsing.rules import DESCRIPTION_PLACEHOLDER, ParserRule

logger = get_logger("txn-tracker.extractor")

_WHITESPACE = re.compile(r"\s+")
_BLOCK_TAGS = [
    "address", "blockquote", "div", "dl", "dt", "dd", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "hr", "li", "ol", "p", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
]


def html_to_text(html: str) -> str:
    """Convert an HTML email body to plain text, one text block per line.

    Line breaks come only from block-level elements and ``<br>``; inline markup
    such as ``<b>`` or ``<span>`` stays on the surrounding line. Images, scripts
    and styles are dropped; link text is kept without its href.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["img", "script", "style"]):
        tag.decompose()
    for node in soup.find_all(string=True):
        if type(node) is NavigableString:
            node.replace_with(_WHITESPACE.sub(" ", node))
    for tag in soup.find_all("br"):
        tag.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert(0, "\n")
        tag.append("\n")
    lines = (line.strip() for line in soup.get_text().splitlines())
    return "\n".join(line for line in lines if line) + "\n"


def extract_fields(rule: ParserRule, body: str) -> dict[str, str]:
    """Apply each of the rule's patterns to the body and collect first capture groups."""
    fields: dict[str, str] = {}
    for name, pattern in rule.patterns.items():
        match = pattern.search(body)
        if not match or not match.groups() or not match.group(1):
            continue
        value = _WHITESPACE.sub(" ", match.group(1).strip())
        if value:
            fields[name] = value
    return fields


def extract_transaction(
    rules: Sequence[ParserRule],
    subject: str,
    body: str,
    received_at: datetime,
) -> ParsedTransaction | None:
    """Return the transaction described by the first fully matching rule, or None."""
    for rule in rules:
        if not rule.matches_subject(subject):
            continue
        fields = extract_fields(rule, body)
        missing = [name for name in rule.required_fields if not fields.get(name)]
        if missing:
            logger.debug(f"Rule {rule.bank}/{rule.type} missing fields {missing} for subject '{subject}'")
            continue
        return ParsedTransaction(
            bank=rule.bank,
            type=rule.type,
            flow=rule.flow,
            amount=parse_amount(fields.get("amount")),
            description=rule.description.replace(DESCRIPTION_PLACEHOLDER, fields.get("description_target", "")),
            transaction_date=received_at,
        )
    return None
