"""
Quote document generation service.
Uses Jinja2 for HTML templating + WeasyPrint for PDF conversion.

The document is client-facing: internal costs, profitability and the
Erasmus+ estimate are never passed to the template.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from app.config import Settings, get_settings
from app.models.quote import Quote
from app.services.costing_engine import CostBreakdown
from app.services.formatting import format_currency
from app.services.quotation_calculator import calculate_for_quote

logger = logging.getLogger(__name__)

# Template directory
TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

# "Why <destination>" blocks, matched on the destination text
DESTINATION_HIGHLIGHTS: Dict[str, List[Tuple[str, str]]] = {
    "madrid": [
        ("Spain's Dynamic Capital",
         "Experience Madrid's vibrant business culture and modern European economy while "
         "exploring the heart of Spanish politics, finance, and innovation."),
        ("World-Class Art & Culture",
         "Visit the Prado Museum, Reina Sofia, and Thyssen-Bornemisza, three of the world's "
         "most important art museums, all within walking distance."),
        ("Spanish Language Immersion",
         "Practice Spanish in its native environment while engaging with local professionals "
         "and experiencing authentic Spanish hospitality and culture."),
        ("Historic Royal Heritage",
         "Explore the Royal Palace, Plaza Mayor, and Retiro Park while learning about Spain's "
         "rich history and its role in global exploration and trade."),
    ],
    "prague": [
        ("Medieval Architecture Marvel",
         "Explore over 1000 years of history through Gothic, Renaissance, and Baroque "
         "architecture in one of Europe's best-preserved medieval cities."),
        ("Modern Tech Hub",
         "Experience Prague's thriving tech startups, game development studios, and "
         "international business centers."),
        ("Czech Cultural Heritage",
         "Discover unique Czech traditions, sample local cuisine, and learn about the country's "
         "peaceful Velvet Revolution and EU integration."),
        ("Central European Gateway",
         "Perfect location for understanding Central European history, politics, and economics "
         "with excellent transport links across the region."),
    ],
    "barcelona": [
        ("Architectural Wonderland",
         "Discover Gaudí's masterpieces including Sagrada Familia, Park Güell, and Casa Batlló "
         "while studying innovative architectural design and urban planning."),
        ("Mediterranean Business Hub",
         "Explore Barcelona's role as a major Mediterranean port and business center, with "
         "strong connections to Latin America and North Africa."),
        ("Catalan Culture & Innovation",
         "Experience the unique Catalan culture and language, and Barcelona's reputation as a "
         "smart city leader in technology and sustainability."),
        ("Olympic Legacy & Sports",
         "Visit Olympic venues from 1992 and learn about Barcelona's transformation into a "
         "modern international city and sports destination."),
    ],
    "paris": [
        ("Global Business Capital",
         "Experience Paris as a major global financial center and headquarters for luxury "
         "brands, fashion houses, and multinational corporations."),
        ("Cultural & Artistic Heritage",
         "Visit world-renowned museums like the Louvre and Musée d'Orsay while exploring French "
         "art, literature, and intellectual traditions."),
        ("European Union Hub",
         "Learn about French politics, EU policies, and international diplomacy in the city "
         "that hosts numerous international organizations."),
        ("Innovation & Technology",
         "Discover Paris's growing tech scene in Station F and La Défense business district."),
    ],
}

GENERIC_HIGHLIGHTS: List[Tuple[str, str]] = [
    ("Educational Excellence",
     "Immerse students in real-world learning experiences that complement classroom "
     "education with practical application in this unique destination."),
    ("Cultural Discovery",
     "Broaden horizons through authentic cultural exchanges and meaningful interactions "
     "with local communities and traditions."),
    ("Professional Development",
     "Gain valuable work experience and develop professional skills in an international "
     "business environment."),
    ("Personal Growth",
     "Build confidence, independence, and adaptability through structured international "
     "travel experiences."),
]

LEARNING_OUTCOMES: List[str] = [
    "Professional work experience in European business environment",
    "Cross-cultural communication and adaptability skills",
    "Understanding of European history and political systems",
    "Language skills development (local language basics)",
    "Enhanced global perspective and career readiness",
    "Independence and problem-solving capabilities",
]


class QuotePdfError(Exception):
    """Raised when the PDF renderer is unavailable or fails."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def _get_jinja_env() -> Environment:
    """Create Jinja2 environment with the templates directory."""
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=True,
    )


def _format_date(d) -> str:
    """Format date for display: 10/02/2026"""
    if d is None:
        return ""
    if isinstance(d, str):
        return d
    return d.strftime("%d/%m/%Y")


def destination_highlights(destination: Optional[str]) -> List[Tuple[str, str]]:
    """Highlights for the first known city named in the destination."""
    text = (destination or "").lower()
    for city, highlights in DESTINATION_HIGHLIGHTS.items():
        if city in text:
            return highlights
    return GENERIC_HIGHLIGHTS


def client_facing_breakdown(breakdown: CostBreakdown) -> dict:
    """Breakdown without the sections reserved for the agency."""
    return breakdown.model_dump(
        mode="json",
        exclude={"internal_costs", "profitability", "erasmus_funding", "net_cost_after_erasmus"},
    )


def render_quote_html(
    quote: Quote,
    breakdown: Optional[CostBreakdown] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Render quote HTML from the Jinja2 template.

    Args:
        quote: The Quote model
        breakdown: Precomputed breakdown (computed from the quote if omitted)
        settings: Settings providing the sender block

    Returns:
        HTML string ready for PDF conversion or preview
    """
    settings = settings or get_settings()
    breakdown = breakdown or calculate_for_quote(quote)

    env = _get_jinja_env()
    template = env.get_template("quote.html")

    context = {
        "quote": quote,
        "costs": client_facing_breakdown(breakdown),
        "highlights": destination_highlights(quote.destination),
        "learning_outcomes": LEARNING_OUTCOMES,
        "sender": {
            "name": settings.agency_name,
            "email": settings.agency_email,
            "phone": settings.agency_phone,
            "address": settings.agency_address,
        },
        # Formatting helpers
        "format_currency": format_currency,
        "format_date": _format_date,
        "generated_at": datetime.now().strftime("%d/%m/%Y %H:%M"),
    }

    return template.render(**context)


def generate_pdf_bytes(
    quote: Quote,
    breakdown: Optional[CostBreakdown] = None,
    settings: Optional[Settings] = None,
) -> bytes:
    """
    Generate PDF bytes for a quote.

    Raises QuotePdfError when WeasyPrint is missing or rendering fails.
    """
    html = render_quote_html(quote, breakdown, settings)

    try:
        from weasyprint import HTML
    except (ImportError, OSError) as e:
        # OSError: WeasyPrint installed but its system libraries (Pango) are missing
        raise QuotePdfError(
            "WeasyPrint is required for PDF generation. "
            "Install it with: pip install weasyprint"
        ) from e

    try:
        return HTML(string=html, base_url=str(TEMPLATE_DIR)).write_pdf()
    except Exception as e:
        logger.exception(f"PDF rendering failed for quote {quote.quote_number}")
        raise QuotePdfError(f"PDF rendering failed: {e}") from e
