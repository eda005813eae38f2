"""
Quotation calculator - runs the costing engine for stored quotes.

Shared by the quotes endpoints (create/update/copy refresh the stored
prices, list/detail/breakdown/preview/PDF read the breakdown) so that every
caller maps a Quote row to engine inputs the same way.
"""

from typing import Any, Dict

from app.models.quote import Quote
from app.services.costing_engine import CostBreakdown, calculate_quote_cost
from app.services.rate_tables import DEFAULT_RATE_TABLES, RateTables


def calculate_for_quote(
    quote: Quote,
    rate_tables: RateTables = DEFAULT_RATE_TABLES,
) -> CostBreakdown:
    """Full cost breakdown for a stored quote."""
    return calculate_quote_cost(
        quote.destination,
        quote.duration,
        quote.number_of_students or 0,
        quote.number_of_teachers or 0,
        quote.adhoc_service_list(),
        quote.custom_pricing(),
        quote.internal_costs(),
        rate_tables=rate_tables,
    )


def refresh_quote_prices(
    quote: Quote,
    rate_tables: RateTables = DEFAULT_RATE_TABLES,
) -> CostBreakdown:
    """Recompute and store the derived prices of a quote."""
    breakdown = calculate_for_quote(quote, rate_tables)
    quote.price_per_student = breakdown.price_per_student
    quote.price_per_teacher = breakdown.price_per_teacher
    quote.total_price = breakdown.total
    return breakdown


def profitability_summary(breakdown: CostBreakdown) -> Dict[str, Any]:
    """Compact margin figures shown on each row of the quotes list."""
    profitability = breakdown.profitability
    return {
        "revenue": profitability.revenue,
        "costs": profitability.costs,
        "gross_profit": profitability.gross_profit,
        "net_profit": profitability.net_profit,
        "gross_margin_percentage": profitability.gross_margin_percentage,
        "net_margin_percentage": profitability.net_margin_percentage,
    }
