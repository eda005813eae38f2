"""
Display formatting for quote amounts.

Amounts are shown as whole euros with comma thousands grouping: €12,345.
"""

import math

from app.services.costing_engine import round_half_up

CURRENCY_SYMBOL = "€"


def format_currency(amount: float) -> str:
    """Format an amount for display: 1234.6 -> "€1,235"."""
    if amount is None:
        amount = 0
    rounded = round_half_up(float(amount))
    if math.isnan(rounded):
        return f"{CURRENCY_SYMBOL}NaN"
    if math.isinf(rounded):
        return f"{CURRENCY_SYMBOL}{'-' if rounded < 0 else ''}∞"
    return f"{CURRENCY_SYMBOL}{int(rounded):,}"
