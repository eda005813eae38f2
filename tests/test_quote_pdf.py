from datetime import date

import pytest

from app.config import Settings
from app.models.quote import Quote
from app.services.quotation_calculator import calculate_for_quote
from app.services.quote_pdf import (
    QuotePdfError,
    GENERIC_HIGHLIGHTS,
    LEARNING_OUTCOMES,
    client_facing_breakdown,
    destination_highlights,
    generate_pdf_bytes,
    render_quote_html,
)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite+aiosqlite://",
        agency_name="My Abroad Ally",
        agency_email="hello@myabroadally.com",
    )


@pytest.fixture
def quote():
    return Quote(
        quote_number="TPQ-2026-000007",
        destination="Florence, Italy",
        trip_type="educational",
        start_date=date(2026, 4, 12),
        end_date=date(2026, 4, 17),
        duration="5 days",
        number_of_students=24,
        number_of_teachers=2,
        school_name="Gymnasium am Park",
        contact_person="Herr Becker",
        student_accommodation_per_day=42,
        teacher_accommodation_per_day=60,
        breakfast_per_day=6,
        dinner_per_day=14,
        transport_card_total=18,
        adhoc_services=[{"name": "Uffizi guided tour", "price_per_person": 25}],
        cost_local_coordinator=987,
        notes="Return flights not included.",
    )


def test_client_facing_breakdown_hides_agency_sections(quote):
    costs = client_facing_breakdown(calculate_for_quote(quote))

    for hidden in ("internal_costs", "profitability", "erasmus_funding", "net_cost_after_erasmus"):
        assert hidden not in costs
    assert costs["country"] == "Italy"
    assert costs["additional_services"]["services"][0]["participants"] == 26


def test_render_quote_html(quote, settings):
    html = render_quote_html(quote, settings=settings)

    assert "My Abroad Ally" in html
    assert "hello@myabroadally.com" in html
    assert "TPQ-2026-000007" in html
    assert "Gymnasium am Park" in html
    assert "12/04/2026" in html
    assert "Uffizi guided tour" in html
    assert "Return flights not included." in html
    assert "987" not in html


@pytest.mark.parametrize(
    "destination, title",
    [
        ("Madrid, Spain", "Historic Royal Heritage"),
        ("Old town of PRAGUE", "Modern Tech Hub"),
        ("Barcelona", "Architectural Wonderland"),
        ("Paris, France", "Global Business Capital"),
    ],
)
def test_destination_highlights_match_city(destination, title):
    assert title in [t for t, _ in destination_highlights(destination)]


@pytest.mark.parametrize("destination", ["Florence, Italy", "", None])
def test_destination_highlights_fall_back_to_generic(destination):
    assert destination_highlights(destination) == GENERIC_HIGHLIGHTS


def test_render_quote_html_narrative_sections(quote, settings):
    html = render_quote_html(quote, settings=settings)

    assert "Why Florence, Italy for Educational Travel?" in html
    for title, _ in GENERIC_HIGHLIGHTS:
        assert title in html
    assert "Educational Value &amp; Learning Outcomes" in html
    for outcome in LEARNING_OUTCOMES:
        assert outcome in html
    assert "Contact My Abroad Ally to discuss this opportunity" in html
    assert "experience for Gymnasium am Park." in html


def test_render_quote_html_uses_city_highlights(quote, settings):
    quote.destination = "Madrid"
    html = render_quote_html(quote, settings=settings)

    assert "Why Madrid for Educational Travel?" in html
    assert "Spanish Language Immersion" in html
    assert "Educational Excellence" not in html


def test_render_escapes_user_text(quote, settings):
    quote.notes = "<script>alert(1)</script>"
    html = render_quote_html(quote, settings=settings)
    assert "<script>alert(1)</script>" not in html


def test_generate_pdf_bytes(quote, settings):
    try:
        pdf = generate_pdf_bytes(quote, settings=settings)
    except QuotePdfError as e:
        pytest.skip(f"PDF renderer unavailable: {e.message}")
    assert pdf.startswith(b"%PDF")
