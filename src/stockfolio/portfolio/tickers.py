"""
Ticker symbol syntax validation.
"""

import re

_STRICT_TICKER = re.compile(r"^[A-Z]{4,5}$")
_ALLOWED_PUNCTUATION = {".", "-"}


def normalize_symbol(symbol: str) -> str:
    """Canonicalize a symbol to stripped uppercase."""
    return symbol.strip().upper()


def is_valid_ticker(symbol: str) -> bool:
    """
    Check whether a symbol is syntactically a ticker.

    A symbol of 1-4 characters is accepted when every character is a letter,
    '.' or '-'. Longer symbols are only accepted when they are 4-5 uppercase
    letters, so in practice this admits five-letter tickers such as GOOGL.

    Args:
        symbol: Symbol to check (expected already uppercased)

    Returns:
        True if the symbol passes both checks
    """
    if not symbol:
        return False

    length = len(symbol)
    if (length < 1 or length > 4) and not _STRICT_TICKER.match(symbol):
        return False

    return all(c.isalpha() or c in _ALLOWED_PUNCTUATION for c in symbol)
