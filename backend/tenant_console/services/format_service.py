# Overview: Locale-neutral rendering of amounts with tenant-configured currency glyphs and separators.

"""
Currency Formatting

Algorithm:
1. Render the amount with exactly `decimals` fraction digits in an
   intermediate form using "," for grouping and "." as decimal point.
   Rounding is ROUND_HALF_EVEN on the shortest decimal representation of the
   amount (floats are converted through repr, so 2.675 rounds as "2.675").
2. Swap the intermediate glyphs for the tenant's separators in ONE pass
   (str.translate). Each intermediate glyph is a token that is replaced
   exactly once, so a thousand separator of "." or a decimal separator of ","
   (or a digit, or a multi-character string) can never be re-substituted.
3. Attach the symbol before or after the number.

Non-finite amounts render as NON_FINITE_SENTINEL instead of raising.

parse_currency() is the structural inverse used by callers that need the
number back (and by the tests that pin the round-trip bound).
"""

from __future__ import annotations

import logging
import math
from decimal import Decimal, ROUND_HALF_EVEN, localcontext
from typing import Any

from ..models import CurrencyFormatOptions, POSITION_BEFORE
from ..settings_catalog import CURRENCY_KIND


logger = logging.getLogger(__name__)

NON_FINITE_SENTINEL = "--"

INTERMEDIATE_GROUP = ","
INTERMEDIATE_POINT = "."


class FormatError(ValueError):
    pass


class FormatParseError(FormatError):
    pass


def _to_decimal(amount: Any) -> Decimal | None:
    """Exact decimal for finite amounts, None for NaN/Infinity."""
    if isinstance(amount, Decimal):
        return amount if amount.is_finite() else None
    if isinstance(amount, bool):
        return Decimal(int(amount))
    if isinstance(amount, int):
        return Decimal(amount)
    if isinstance(amount, float):
        if not math.isfinite(amount):
            return None
        return Decimal(repr(amount))
    raise TypeError(f"amount must be a real number, got {type(amount).__name__}")


def _coerce_options(options: CurrencyFormatOptions | dict | None) -> CurrencyFormatOptions:
    if isinstance(options, CurrencyFormatOptions):
        return options
    # Partial dicts are merged over the defaults, never used bare
    return CURRENCY_KIND.merge(options)


def render_intermediate(value: Decimal, decimals: int) -> str:
    """'1234.5', 2 -> '1,234.50' (the locale-neutral form)."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        rounded = value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_EVEN)
        if rounded == 0:
            # No "-0.00"
            rounded = abs(rounded)
        return f"{rounded:,.{decimals}f}"


def localize_separators(intermediate: str, options: CurrencyFormatOptions) -> str:
    table = str.maketrans({
        INTERMEDIATE_GROUP: options.thousand_separator,
        INTERMEDIATE_POINT: options.decimal_separator,
    })
    return intermediate.translate(table)


def format_currency(amount: Any, options: CurrencyFormatOptions | dict | None = None) -> str:
    opts = _coerce_options(options)
    value = _to_decimal(amount)
    if value is None:
        logger.debug("Non-finite amount %r rendered as sentinel", amount)
        return NON_FINITE_SENTINEL

    number = localize_separators(render_intermediate(value, opts.decimals), opts)
    if opts.position == POSITION_BEFORE:
        return f"{opts.symbol}{number}"
    return f"{number}{opts.symbol}"


def parse_currency(text: str, options: CurrencyFormatOptions | dict | None = None) -> Decimal:
    """
    Recover the number from a string produced by format_currency with the
    same options. Parsing is positional (symbol, sign, fixed-width fraction,
    three-digit groups from the right), so it works even when separators are
    digits or each other's glyphs.
    """
    opts = _coerce_options(options)
    if not isinstance(text, str) or text == NON_FINITE_SENTINEL:
        raise FormatParseError(f"Cannot parse {text!r}")

    body = text
    symbol = opts.symbol
    if symbol:
        if opts.position == POSITION_BEFORE:
            if not body.startswith(symbol):
                raise FormatParseError(f"{text!r}: missing leading symbol {symbol!r}")
            body = body[len(symbol):]
        else:
            if not body.endswith(symbol):
                raise FormatParseError(f"{text!r}: missing trailing symbol {symbol!r}")
            body = body[: len(body) - len(symbol)]

    negative = body.startswith("-")
    if negative:
        body = body[1:]

    fraction = ""
    if opts.decimals:
        sep = opts.decimal_separator
        width = opts.decimals + len(sep)
        if len(body) <= width:
            raise FormatParseError(f"{text!r}: too short for {opts.decimals} decimals")
        fraction = body[-opts.decimals:]
        if body[-width:-opts.decimals] != sep:
            raise FormatParseError(f"{text!r}: decimal separator not where expected")
        body = body[:-width]

    groups: list[str] = []
    tsep = opts.thousand_separator
    while len(body) > 3:
        groups.insert(0, body[-3:])
        body = body[:-3]
        if tsep:
            if not body.endswith(tsep):
                raise FormatParseError(f"{text!r}: thousand separator not where expected")
            body = body[: len(body) - len(tsep)]
    groups.insert(0, body)

    digits = "".join(groups)
    if not groups[0] or not digits.isdigit() or not (fraction == "" or fraction.isdigit()):
        raise FormatParseError(f"{text!r}: not a formatted amount")

    value = Decimal(f"{digits}.{fraction}" if fraction else digits)
    return -value if negative else value


class CurrencyFormatter:
    """Formatter bound to one tenant's resolved currency options."""

    def __init__(self, options: CurrencyFormatOptions | dict | None = None):
        self.options = _coerce_options(options)

    @property
    def code(self) -> str:
        return self.options.code

    def format(self, amount: Any) -> str:
        return format_currency(amount, self.options)

    __call__ = format

    def parse(self, text: str) -> Decimal:
        return parse_currency(text, self.options)
