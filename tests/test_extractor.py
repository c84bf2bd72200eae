"""Tests for the rule-based transaction extractor and the default rule set."""

import json
from datetime import UTC, datetime
from pathlib import Path

from app.core.models import Flow
from app.parsing.extractor import extract_transaction, html_to_text
from app.parsing.rules import DEFAULT_RULES, ParserRule, load_rules

RECEIVED_AT = datetime(2025, 10, 26, 10, 30, tzinfo=UTC)

BCA_QRIS_HTML = """
<html><body>
<img src="https://bca.co.id/logo.png" alt="BCA">
<table>
  <tr><td>Pembayaran Ke</td><td>: Toko   Kopi</td></tr>
  <tr><td>Tanggal Transaksi</td><td>: 01 Jan 2020 08:00:00</td></tr>
  <tr><td>Total Bayar</td><td>: IDR 50.000</td></tr>
</table>
<p>Hubungi <a href="https://www.bca.co.id/halo">Halo BCA</a></p>
</body></html>
"""


def _rule(
    type_: str,
    subjects: tuple[str, ...],
    required: tuple[str, ...] = ("amount", "description_target"),
) -> ParserRule:
    return ParserRule(
        bank="TEST",
        flow=Flow.OUT,
        subjects=subjects,
        type=type_,
        patterns={"amount": r"Amount\s*:\s*([\d.,]+)", "description_target": r"To\s*:\s*(.*?)\n"},
        required_fields=required,
        description=f"{type_} {{{{description_target}}}}",
    )


def test_bca_qris_payment_from_html() -> None:
    """A BCA 'Pembayaran Berhasil' email yields the QRIS payment transaction."""
    body = html_to_text(BCA_QRIS_HTML)
    txn = extract_transaction(DEFAULT_RULES, "Pembayaran Berhasil", body, RECEIVED_AT)
    if txn is None:
        msg = f"Expected a transaction, got None for body: {body!r}"
        raise AssertionError(msg)
    expected = {
        "bank": "BCA",
        "type": "QRIS/Payment",
        "flow": Flow.OUT,
        "amount": 50000.0,
        "description": "Bayar ke Toko Kopi",
        "transaction_date": RECEIVED_AT,
    }
    if txn.model_dump() != expected:
        msg = f"Expected {expected}, got {txn.model_dump()}"
        raise AssertionError(msg)


def test_html_to_text_drops_images_and_hrefs() -> None:
    """Images and link targets are removed, link text is kept."""
    text = html_to_text(BCA_QRIS_HTML)
    if "logo.png" in text or "https://" in text:
        msg = f"Expected no image or href in text, got {text!r}"
        raise AssertionError(msg)
    if "Halo BCA" not in text:
        msg = f"Expected link text to be kept, got {text!r}"
        raise AssertionError(msg)


def test_shared_subject_falls_through_to_mandiri_rule() -> None:
    """A Mandiri 'Pembayaran Berhasil' email is not claimed by the earlier BCA rule."""
    body = "Total Bayar\nRp 25.000\nPenyedia Jasa\nPLN Prepaid\nTerima kasih\n"
    txn = extract_transaction(DEFAULT_RULES, "Pembayaran Berhasil", body, RECEIVED_AT)
    if txn is None or txn.bank != "Mandiri" or txn.type != "Top-up/Payment":
        msg = f"Expected the Mandiri Top-up/Payment rule to match, got {txn}"
        raise AssertionError(msg)
    if txn.amount != 25000.0 or txn.description != "Top-up/Bayar ke PLN Prepaid":
        msg = f"Unexpected Mandiri extraction: {txn}"
        raise AssertionError(msg)


def test_mandiri_transfer_collapses_multiline_recipient() -> None:
    """Recipient names spanning several lines are collapsed to single spaces."""
    body = "Penerima\nBUDI\nSANTOSO\nBank Mandiri - 1234\nJumlah Transfer\nRp 1.500.000,00\n"
    txn = extract_transaction(DEFAULT_RULES, "Transfer Berhasil", body, RECEIVED_AT)
    if txn is None or txn.description != "Transfer ke BUDI SANTOSO" or txn.amount != 1500000.0:
        msg = f"Unexpected Mandiri transfer extraction: {txn}"
        raise AssertionError(msg)


def test_rule_order_decides_the_winner() -> None:
    """When two rules match the same email, the one declared first wins."""
    first = _rule("First", ("Payment Successful",))
    second = _rule("Second", ("Payment", "Successful"))
    body = "Amount : 10.000\nTo : Warung\n"
    winner = extract_transaction([first, second], "Payment Successful", body, RECEIVED_AT)
    if winner is None or winner.type != "First":
        msg = f"Expected rule 'First' to win, got {winner}"
        raise AssertionError(msg)
    winner = extract_transaction([second, first], "Payment Successful", body, RECEIVED_AT)
    if winner is None or winner.type != "Second":
        msg = f"Expected rule 'Second' to win, got {winner}"
        raise AssertionError(msg)


def test_missing_required_field_never_matches() -> None:
    """A rule with one missing required field does not match even if others are found."""
    rule = _rule("Only", ("Payment",))
    txn = extract_transaction([rule], "Payment Successful", "Amount : 10.000\n", RECEIVED_AT)
    if txn is not None:
        msg = f"Expected no match without description_target, got {txn}"
        raise AssertionError(msg)


def test_subject_match_is_case_insensitive_and_mismatch_returns_none() -> None:
    """Subjects match case-insensitively; unrelated subjects give no match."""
    rule = _rule("Only", ("Payment Successful",))
    body = "Amount : 10.000\nTo : Warung\n"
    if extract_transaction([rule], "PAYMENT SUCCESSFUL - 123", body, RECEIVED_AT) is None:
        msg = "Expected a case-insensitive subject match"
        raise AssertionError(msg)
    if extract_transaction([rule], "Promo akhir tahun", body, RECEIVED_AT) is not None:
        msg = "Expected no match for an unrelated subject"
        raise AssertionError(msg)


def test_load_rules_from_json(tmp_path: Path) -> None:
    """Rules loaded from a JSON file keep their order and compile case-insensitively."""
    rules_file = tmp_path / "rules.json"
    rules_file.write_text(
        json.dumps(
            [
                {
                    "bank": "BCA",
                    "flow": "IN",
                    "subjects": ["Dana Masuk"],
                    "type": "Transfer In",
                    "patterns": {
                        "amount": r"Nominal\s*:\s*IDR\s*([\d.,]+)",
                        "description_target": r"Dari\s*:\s*(.*?)\n",
                    },
                    "required_fields": ["amount", "description_target"],
                    "description": "Terima dari {{description_target}}",
                }
            ]
        ),
        encoding="utf-8",
    )
    rules = load_rules(str(rules_file))
    txn = extract_transaction(rules, "Dana Masuk", "NOMINAL : IDR 75.000\ndari : Andi\n", RECEIVED_AT)
    if txn is None or txn.flow != Flow.IN or txn.amount != 75000.0 or txn.description != "Terima dari Andi":
        msg = f"Unexpected extraction with JSON rules: {txn}"
        raise AssertionError(msg)
    if load_rules(None) is not DEFAULT_RULES:
        msg = "Expected the built-in rules when no file is configured"
        raise AssertionError(msg)


def test_inline_markup_stays_on_the_field_line() -> None:
    """Bold or span-wrapped values are not split across lines, so the whole value is captured."""
    html = (
        "<table><tr><td>Pembayaran Ke : <b>Toko</b> <font color='red'>Kopi</font></td></tr>"
        "<tr><td>Total Bayar : <span>IDR 50.000</span></td></tr></table>"
    )
    body = html_to_text(html)
    if body != "Pembayaran Ke : Toko Kopi\nTotal Bayar : IDR 50.000\n":
        msg = f"Unexpected text for inline markup: {body!r}"
        raise AssertionError(msg)
    txn = extract_transaction(DEFAULT_RULES, "Pembayaran Berhasil", body, RECEIVED_AT)
    if txn is None or txn.description != "Bayar ke Toko Kopi" or txn.amount != 50000.0:
        msg = f"Expected the full merchant name, got {txn}"
        raise AssertionError(msg)


def test_block_elements_and_line_breaks_start_new_lines() -> None:
    """Paragraphs, divs and <br> separate lines; source indentation does not."""
    html = "<div>Penerima<br>BUDI\n   SANTOSO</div><p>Bank   Mandiri</p>"
    if html_to_text(html) != "Penerima\nBUDI SANTOSO\nBank Mandiri\n":
        msg = f"Unexpected block layout: {html_to_text(html)!r}"
        raise AssertionError(msg)
