"""Symbol classification: option detection and underlying extraction.

Option symbols arrive in whatever shape the broker exported, so the
checks here are heuristics rather than a full OCC parser.

Usage::

    is_option("SPY251218C00679000")          # True
    underlying_symbol("SPY251218C00679000")  # "SPY"
    options_multiplier("AAPL")               # 1.0
"""

from __future__ import annotations

import re

from ..core.enums import SymbolConvention

OPTIONS_MULTIPLIER = 100.0

_SIX_DIGITS = re.compile(r"[0-9]{6}")
_OCC_MARKER = re.compile(r"[0-9]{6}[CP]")


def is_option(symbol: str) -> bool:
    """Return True when ``symbol`` looks like an option contract.

    Requires length >= 10, a ``C`` or ``P`` somewhere, and either a run
    of six digits (the expiry) or a length above 15.
    """
    if len(symbol) < 10:
        return False
    if "C" not in symbol and "P" not in symbol:
        return False
    return bool(_SIX_DIGITS.search(symbol)) or len(symbol) > 15


def underlying_symbol(
    symbol: str,
    convention: SymbolConvention = SymbolConvention.FIRST_DIGIT,
) -> str:
    """Reduce an option symbol to its underlying ticker.

    Parameters
    ----------
    symbol : str
        Raw symbol, option or not.
    convention : SymbolConvention
        ``FIRST_DIGIT`` takes the prefix before the first digit.  ``OCC``
        takes the prefix before a ``YYMMDD`` + ``C``/``P`` marker, which
        keeps roots that themselves contain digits.

    Returns
    -------
    str
        The underlying, or ``symbol`` unchanged when no prefix is found.
    """
    if not symbol:
        return symbol

    if convention == SymbolConvention.OCC:
        match = _OCC_MARKER.search(symbol)
        if match and match.start() > 0:
            return symbol[: match.start()]
        return symbol

    for idx, ch in enumerate(symbol):
        if "0" <= ch <= "9":
            return symbol[:idx] if idx > 0 else symbol
    return symbol


def options_multiplier(symbol: str) -> float:
    """Contract multiplier applied to P&L: 100 for options, 1 otherwise."""
    return OPTIONS_MULTIPLIER if is_option(symbol) else 1.0
