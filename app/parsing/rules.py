"""Parser rules: ordered, data-only descriptions of each bank's notification emails.

Rules are evaluated top to bottom and the first full match wins, so a rule with
a more specific subject/pattern combination must come before a broader one that
shares a subject line (e.g. BCA "Pembayaran Berhasil" before Mandiri's).
"""

import json
import re
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from app.core.models import Flow
from app.core.utils import get_logger

logger = get_logger("txn-tracker.rules")

DESCRIPTION_PLACEHOLDER = "{{description_target}}"


class ParserRule(BaseModel):
    """A declarative matcher for one kind of bank notification email."""

    model_config = ConfigDict(frozen=True)

    bank: str
    flow: Flow
    subjects: tuple[str, ...]
    type: str
    patterns: dict[str, re.Pattern]
    required_fields: tuple[str, ...]
    description: str

    @field_validator("patterns", mode="before")
    @classmethod
    def compile_patterns(cls, value: dict) -> dict:
        """Compile string patterns case-insensitively, keep precompiled ones as is."""
        return {
            name: re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
            for name, pattern in value.items()
        }

    def matches_subject(self, subject: str) -> bool:
        """Return True if any of the rule's subject substrings occurs in `subject`."""
        subject_lower = subject.lower()
        return any(s.lower() in subject_lower for s in self.subjects)


DEFAULT_RULES: tuple[ParserRule, ...] = (
    # BCA outgoing
    ParserRule(
        bank="BCA",
        flow=Flow.OUT,
        subjects=("Internet Transaction Journal", "Pembayaran Berhasil"),
        type="QRIS/Payment",
        patterns={
            "amount": r"Total Bayar\s*:\s*IDR\s*([\d.,]+)",
            "description_target": r"Pembayaran Ke\s*:\s*(.*?)\s*\n",
        },
        required_fields=("amount", "description_target"),
        description="Bayar ke {{description_target}}",
    ),
    ParserRule(
        bank="BCA",
        flow=Flow.OUT,
        subjects=("Internet Transaction Journal",),
        type="Transfer",
        patterns={
            "amount": r"Nominal Tujuan\s*:\s*IDR\s*([\d.,]+)",
            "description_target": r"Nama Penerima\s*:\s*(.*?)\s*\n",
        },
        required_fields=("amount", "description_target"),
        description="Transfer ke {{description_target}}",
    ),
    # Mandiri outgoing
    ParserRule(
        bank="Mandiri",
        flow=Flow.OUT,
        subjects=("Transfer Berhasil", "Transfer dengan BI Fast Berhasil"),
        type="Transfer",
        patterns={
            "amount": r"Jumlah Transfer\s*Rp\s*([\d.,]+)",
            "description_target": r"Penerima\s*([\s\S]*?)Bank Mandiri",
        },
        required_fields=("amount", "description_target"),
        description="Transfer ke {{description_target}}",
    ),
    ParserRule(
        bank="Mandiri",
        flow=Flow.OUT,
        subjects=("Top-up Berhasil", "Top-up e-money Berhasil", "Pembayaran Berhasil"),
        type="Top-up/Payment",
        patterns={
            "amount": r"(?:Total Transaksi|Nominal Top-up|Total Bayar)\s*Rp\s*([\d.,]+)",
            "description_target": r"Penyedia Jasa\s*(.*?)\n",
        },
        required_fields=("amount", "description_target"),
        description="Top-up/Bayar ke {{description_target}}",
    ),
)


@lru_cache(maxsize=8)
def load_rules(path: str | None = None) -> tuple[ParserRule, ...]:
    """Load the ordered rule set from a JSON file, or return the built-in rules."""
    if not path:
        return DEFAULT_RULES
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    rules = tuple(ParserRule.model_validate(item) for item in raw)
    logger.info(f"Loaded {len(rules)} parser rules from {path}")
    return rules
