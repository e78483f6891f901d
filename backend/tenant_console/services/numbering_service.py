# Overview: Invoice-number template rendering and validation for the billing numbering settings.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date as date_type, datetime

from ..models import InvoiceNumberingConfig, RESET_NEVER, RESET_MONTHLY
from ..settings_catalog import INVOICE_NUMBERING_KIND


DEFAULT_PREFIX = "INV"
MIN_SEQUENCE_LENGTH = 1
MAX_SEQUENCE_LENGTH = 10

TOKEN_RE = re.compile(r"\{([A-Z]+)\}")


@dataclass
class InvoiceNumberPreview:
    value: str
    resolved_prefix: str
    sequence: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def clamp_sequence_length(value: int | None) -> int:
    if not value:
        return INVOICE_NUMBERING_KIND.default.sequence_length
    return min(MAX_SEQUENCE_LENGTH, max(MIN_SEQUENCE_LENGTH, int(value)))


def _date_tokens(day: date_type) -> dict[str, str]:
    return {
        "YYYY": f"{day.year:04d}",
        "YY": f"{day.year % 100:02d}",
        "MM": f"{day.month:02d}",
        "DD": f"{day.day:02d}",
    }


def render_template(template: str, replacements: dict[str, str]) -> str:
    """Replace {TOKEN}s in one pass; unknown tokens stay verbatim."""
    if not template:
        return ""
    return TOKEN_RE.sub(lambda m: replacements.get(m.group(1)) or m.group(0), template)


def describe_reset_frequency(reset: str) -> str:
    if reset == RESET_NEVER:
        return "Sequence never resets automatically."
    if reset == RESET_MONTHLY:
        return "Sequence resets on the first day of each month."
    return "Sequence resets on January 1st every year."


def compute_invoice_number_preview(
    config: InvoiceNumberingConfig | dict | None = None,
    *,
    date: date_type | None = None,
    sequence: int | None = None,
    prefix_template: str | None = None,
    format_template: str | None = None,
    sequence_length: int | None = None,
) -> InvoiceNumberPreview:
    """
    Render the next invoice number for a numbering config (or draft).

    Keyword overrides win over the config; the config is merged over the
    compiled-in defaults first, so a partial draft is fine.
    """
    if not isinstance(config, InvoiceNumberingConfig):
        config = INVOICE_NUMBERING_KIND.merge(config)

    day = date or datetime.now().date()
    tokens = _date_tokens(day)
    prefix_tpl = prefix_template if prefix_template is not None else config.prefix_template
    format_tpl = format_template if format_template is not None else config.format_template
    length = clamp_sequence_length(sequence_length if sequence_length is not None else config.sequence_length)
    seq = sequence if sequence is not None else config.next_sequence

    resolved_prefix = render_template(prefix_tpl, tokens) or DEFAULT_PREFIX
    tokens["PREFIX"] = resolved_prefix
    tokens["SEQ"] = str(max(0, seq)).zfill(length)
    value = render_template(format_tpl, tokens)

    preview = InvoiceNumberPreview(value=value, resolved_prefix=resolved_prefix, sequence=seq)
    if "{SEQ}" not in format_tpl:
        preview.errors.append("Format template must include the {SEQ} placeholder.")
    if not prefix_tpl.strip():
        preview.errors.append("Prefix template cannot be empty.")
    if not resolved_prefix.strip():
        preview.warnings.append("Prefix template resolves to an empty value with the current date.")
    if "{PREFIX}" not in format_tpl:
        preview.warnings.append("Format template does not inject the prefix. Consider adding {PREFIX}.")
    return preview


def validate_invoice_numbering_draft(draft: InvoiceNumberingConfig | dict | None) -> InvoiceNumberPreview:
    return compute_invoice_number_preview(draft)
