from datetime import date

import pytest

from tenant_console.models import InvoiceNumberingConfig
from tenant_console.services.numbering_service import (
    clamp_sequence_length,
    compute_invoice_number_preview,
    describe_reset_frequency,
    render_template,
    validate_invoice_numbering_draft,
)


DAY = date(2025, 3, 7)


def test_default_config_preview():
    preview = compute_invoice_number_preview(InvoiceNumberingConfig(), date=DAY)
    assert preview.value == "INV-2025-2025-001"
    assert preview.resolved_prefix == "INV-2025"
    assert preview.sequence == 1
    assert preview.is_valid
    assert preview.warnings == []


def test_keyword_overrides_win():
    preview = compute_invoice_number_preview(
        {"prefixTemplate": "FAC", "nextSequence": 9},
        date=DAY,
        format_template="{PREFIX}/{YY}{MM}{DD}/{SEQ}",
        sequence=42,
        sequence_length=5,
    )
    assert preview.value == "FAC/250307/00042"


def test_unknown_tokens_are_left_verbatim():
    assert render_template("{PREFIX}-{WEEK}", {"PREFIX": "A"}) == "A-{WEEK}"


def test_empty_prefix_falls_back_and_is_an_error():
    preview = compute_invoice_number_preview(prefix_template="", date=DAY, sequence=3)
    assert preview.resolved_prefix == "INV"
    assert preview.value == "INV-2025-003"
    assert "Prefix template cannot be empty." in preview.errors
    assert not preview.is_valid


def test_format_without_seq_is_invalid():
    preview = validate_invoice_numbering_draft({"formatTemplate": "{PREFIX}-{YYYY}"})
    assert preview.errors == ["Format template must include the {SEQ} placeholder."]


def test_format_without_prefix_only_warns():
    preview = compute_invoice_number_preview(format_template="{YYYY}-{SEQ}", date=DAY)
    assert preview.is_valid
    assert preview.warnings == ["Format template does not inject the prefix. Consider adding {PREFIX}."]


@pytest.mark.parametrize("raw,expected", [(None, 3), (0, 3), (-4, 1), (7, 7), (99, 10)])
def test_clamp_sequence_length(raw, expected):
    assert clamp_sequence_length(raw) == expected


def test_describe_reset_frequency():
    assert describe_reset_frequency("NEVER") == "Sequence never resets automatically."
    assert describe_reset_frequency("MONTHLY").startswith("Sequence resets on the first day")
    assert describe_reset_frequency("YEARLY") == "Sequence resets on January 1st every year."
