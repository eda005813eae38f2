import math

import pytest

from app.services.costing_engine import (
    CUSTOM_PRICING_DEFAULTS,
    INTERNAL_COST_DEFAULTS,
    AdhocService,
    CustomPricing,
    InternalCosts,
    TripParameters,
    calculate_for_trip,
    calculate_quote_cost,
    parse_duration,
)
from app.services.destination_resolver import Country
from app.services.rate_tables import DEFAULT_RATE_TABLES, ErasmusGroup


def _calc(students=10, teachers=1, destination="Madrid", duration="7 days", **kwargs):
    return calculate_quote_cost(destination, duration, students, teachers, **kwargs)


# ============================================================================
# Defaults and parsing
# ============================================================================

def test_defaults_table():
    assert all(value == 0 for value in CUSTOM_PRICING_DEFAULTS.values())
    assert INTERNAL_COST_DEFAULTS["cost_student_coordination"] == 60
    assert INTERNAL_COST_DEFAULTS["cost_teacher_coordination"] == 0
    assert INTERNAL_COST_DEFAULTS["cost_local_coordinator"] == 150
    assert INTERNAL_COST_DEFAULTS["cost_breakfast_per_day"] == 0


@pytest.mark.parametrize(
    "text, days",
    [
        ("7 days", 7), ("10 days", 10), ("2 weeks", 2), ("about a week", 7), ("", 7), (None, 7),
        # Arabic-Indic digits are not read as a duration
        ("٣ days", 7), ("٣ or 5 days", 5),
    ],
)
def test_parse_duration(text, days):
    assert parse_duration(text) == days


def test_parse_duration_caps_oversized_numbers():
    assert parse_duration("9" * 400 + " days") == 10 ** 309
    assert parse_duration("0" * 500 + "12 days") == 12


def test_unparsable_duration_uses_seven_days():
    result = _calc(duration="a week or so", custom_pricing=CustomPricing(student_accommodation_per_day=10))
    assert result.days == 7
    assert result.student.accommodation == 10 * 7 * 10


# ============================================================================
# Sample scenario
# ============================================================================

def test_madrid_sample_scenario():
    pricing = CustomPricing(
        student_accommodation_per_day=35,
        breakfast_per_day=5,
        lunch_per_day=0,
        dinner_per_day=0,
        transport_card_total=10,
    )
    result = calculate_quote_cost("Madrid, Spain", "7 days", 30, 2, [], pricing)

    assert result.country == Country.SPAIN
    assert result.days == 7

    assert result.student.accommodation == 7350
    assert result.student.meals == 1050
    assert result.student.transport_card == 300
    assert result.student.total_for_all_students == 8700
    assert result.student.total_per_student == 290

    assert result.teacher.teacher_discount == 0.75
    assert result.teacher.accommodation == 0
    assert result.teacher.meals == pytest.approx(5 * 0.75 * 7 * 2)
    assert result.teacher.total_per_teacher == 36  # 36.25 rounded

    assert result.subtotal == pytest.approx(8772.5)
    assert result.group_discount is not None
    assert result.group_discount.percentage == pytest.approx(5)
    assert result.group_discount.amount == pytest.approx(438.625)
    assert result.total == pytest.approx(8333.875)

    # Internal costs: default coordination 60 per student + flat coordinator
    assert result.internal_costs.coordination == 1800
    assert result.internal_costs.local_coordinator == 150
    assert result.internal_costs.total_costs == 1950

    assert result.profitability.gross_profit == pytest.approx(6383.875)
    assert result.profitability.net_profit == pytest.approx(6383.875 / 1.21)
    assert result.profitability.vat == pytest.approx(6383.875 - 6383.875 / 1.21)

    assert result.erasmus_funding.group == ErasmusGroup.GROUP_2
    assert result.erasmus_funding.total_funding == 112 * 7 * 30 + 160 * 7 * 2
    assert result.net_cost_after_erasmus == -17426

    assert result.price_per_student == 290
    assert result.price_per_teacher == 36


# ============================================================================
# Group discount
# ============================================================================

@pytest.mark.parametrize(
    "students, teachers, percentage",
    [(27, 2, None), (28, 2, 5), (36, 4, 8), (45, 5, 12), (55, 4, 12)],
)
def test_group_discount_tiers_never_stack(students, teachers, percentage):
    pricing = CustomPricing(student_accommodation_per_day=50, teacher_accommodation_per_day=50)
    result = _calc(students, teachers, custom_pricing=pricing)

    if percentage is None:
        assert result.group_discount is None
        assert result.total == result.subtotal
    else:
        assert result.group_discount.percentage == pytest.approx(percentage)
        assert result.group_discount.amount == pytest.approx(result.subtotal * percentage / 100)
        assert result.total == pytest.approx(result.subtotal * (1 - percentage / 100))


# ============================================================================
# Erasmus+ funding
# ============================================================================

def test_erasmus_fourteen_days_uses_full_rate_only():
    result = _calc(1, 1, duration="14 days")
    assert result.erasmus_funding.funding_per_student == 112 * 14
    assert result.erasmus_funding.funding_per_teacher == 160 * 14


def test_erasmus_fifteenth_day_uses_reduced_rate():
    result = _calc(1, 1, duration="15 days")
    assert result.erasmus_funding.funding_per_student == 112 * 14 + 78
    assert result.erasmus_funding.funding_per_teacher == 160 * 14 + 112


def test_erasmus_is_never_deducted_from_total():
    pricing = CustomPricing(student_accommodation_per_day=40)
    result = _calc(10, 0, custom_pricing=pricing)
    assert result.total == result.subtotal
    assert result.net_cost_after_erasmus == round(result.total - result.erasmus_funding.total_funding)


def test_unmapped_erasmus_country_gives_no_funding():
    tables = DEFAULT_RATE_TABLES.model_copy(update={"erasmus_country_groups": {}})
    result = _calc(rate_tables=tables, custom_pricing=CustomPricing(student_accommodation_per_day=40))
    assert result.erasmus_funding is None
    assert result.net_cost_after_erasmus == round(result.total)


def test_uk_is_subsidised_as_group_two():
    result = _calc(destination="London")
    assert result.country == Country.UNITED_KINGDOM
    assert result.erasmus_funding.group == ErasmusGroup.GROUP_2


# ============================================================================
# Teachers
# ============================================================================

def test_teacher_discount_applies_to_meals_only():
    pricing = CustomPricing(
        student_accommodation_per_day=40,
        teacher_accommodation_per_day=40,
        breakfast_per_day=5,
        lunch_per_day=10,
        dinner_per_day=15,
    )
    result = calculate_quote_cost("Paris", "5 days", 20, 3, custom_pricing=pricing)

    assert result.country == Country.FRANCE
    assert result.teacher.accommodation == 40 * 5 * 3
    assert result.teacher.meals == pytest.approx(30 * 0.7 * 5 * 3)
    assert result.student.meals == 30 * 5 * 20


def test_teachers_share_student_flat_amounts():
    pricing = CustomPricing(
        transport_card_total=20,
        student_coordination_fee_total=100,
        teacher_coordination_fee_total=999,
        airport_transfer_per_person=15,
    )
    result = _calc(10, 2, custom_pricing=pricing)

    assert result.teacher.transport_card == 40
    assert result.teacher.coordination_fee == 200
    assert result.teacher.airport_transfer == 30
    assert result.teacher.total_per_teacher == 135


# ============================================================================
# Ad hoc services
# ============================================================================

def test_adhoc_services_are_priced_per_participant():
    services = [
        AdhocService(name="Museum", price_per_person=12),
        AdhocService(name="Boat trip", price_per_person=20.5),
    ]
    result = _calc(20, 2, adhoc_services=services)

    lines = result.additional_services.services
    assert [line.name for line in lines] == ["Museum", "Boat trip"]
    assert lines[0].participants == 22
    assert lines[0].total == 264
    assert result.additional_services.total == pytest.approx(264 + 451)
    assert result.subtotal == pytest.approx(715)


# ============================================================================
# Internal costs and profitability
# ============================================================================

@pytest.mark.parametrize("students", [1, 1000])
def test_local_coordinator_cost_is_flat(students):
    assert _calc(students, 0).internal_costs.local_coordinator == 150

    costs = InternalCosts(cost_local_coordinator=275)
    assert _calc(students, 0, internal_costs=costs).internal_costs.local_coordinator == 275


def test_internal_costs_use_all_participants_for_meals_and_transport():
    costs = InternalCosts(
        cost_student_accommodation_per_day=20,
        cost_teacher_accommodation_per_day=30,
        cost_breakfast_per_day=2,
        cost_lunch_per_day=4,
        cost_dinner_per_day=6,
        cost_local_transportation_card=8,
        cost_student_coordination=50,
        cost_teacher_coordination=10,
        cost_local_coordinator=100,
    )
    result = _calc(10, 2, duration="5 days", internal_costs=costs)
    internal = result.internal_costs

    assert internal.student_accommodation == 20 * 5 * 10
    assert internal.teacher_accommodation == 30 * 5 * 2
    assert internal.meals == 12 * 5 * 12
    assert internal.local_transportation == 8 * 12
    assert internal.coordination == 50 * 10 + 10 * 2
    assert internal.total_costs == 1000 + 300 + 720 + 96 + 520 + 100


def test_zero_revenue_gives_zero_margins():
    result = _calc(0, 0)
    assert result.total == 0
    assert result.profitability.gross_profit == -150
    assert result.profitability.gross_margin_percentage == 0
    assert result.profitability.net_margin_percentage == 0


def test_margins_are_relative_to_revenue():
    pricing = CustomPricing(student_accommodation_per_day=100)
    costs = InternalCosts(cost_student_coordination=0, cost_local_coordinator=0)
    result = _calc(10, 0, custom_pricing=pricing, internal_costs=costs)

    assert result.profitability.revenue == 7000
    assert result.profitability.gross_margin_percentage == 100
    assert result.profitability.net_margin_percentage == pytest.approx(100 / 1.21)


# ============================================================================
# Properties
# ============================================================================

def test_idempotent():
    pricing = CustomPricing(student_accommodation_per_day=33.3, breakfast_per_day=4.4, dinner_per_day=9.9)
    services = [AdhocService(name="Tour", price_per_person=7.7)]
    first = _calc(31, 3, custom_pricing=pricing, adhoc_services=services)
    second = _calc(31, 3, custom_pricing=pricing, adhoc_services=services)
    assert first.model_dump() == second.model_dump()


def test_total_for_all_students_is_monotonic():
    pricing = CustomPricing(student_accommodation_per_day=30, lunch_per_day=8, transport_card_total=12)
    previous = -1.0
    for students in range(0, 80):
        total = _calc(students, 2, custom_pricing=pricing).student.total_for_all_students
        assert total >= previous
        previous = total


def test_inputs_are_not_mutated():
    pricing = CustomPricing(student_accommodation_per_day=40, breakfast_per_day=5)
    costs = InternalCosts(cost_local_coordinator=200)
    services = [AdhocService(name="Tour", price_per_person=10)]
    before = (pricing.model_dump(), costs.model_dump(), [s.model_dump() for s in services])

    _calc(45, 5, custom_pricing=pricing, internal_costs=costs, adhoc_services=services)

    assert (pricing.model_dump(), costs.model_dump(), [s.model_dump() for s in services]) == before


def _walk_numbers(value):
    if isinstance(value, dict):
        for item in value.values():
            yield from _walk_numbers(item)
    elif isinstance(value, list):
        for item in value:
            yield from _walk_numbers(item)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        yield value


FULL_PRICING = CustomPricing(
    student_accommodation_per_day=42,
    teacher_accommodation_per_day=55,
    breakfast_per_day=6,
    lunch_per_day=12,
    dinner_per_day=14,
    transport_card_total=22,
    student_coordination_fee_total=50,
    teacher_coordination_fee_total=25,
    airport_transfer_per_person=30,
)


@pytest.mark.parametrize(
    "students, teachers, destination, duration, pricing, costs, services",
    [
        (0, 0, "", "", None, None, ()),
        (30, 2, "Madrid", "7 days", FULL_PRICING, None, ()),
        (1, 0, "Prague", "15 days", FULL_PRICING, InternalCosts(cost_local_coordinator=0), ()),
        (
            55, 5, "London, UK", "21 days", FULL_PRICING,
            InternalCosts(cost_student_accommodation_per_day=30, cost_lunch_per_day=9),
            [AdhocService(name="Museum pass", price_per_person=18.5)],
        ),
        (0, 3, "Atlantis", "3 days", FULL_PRICING, None, [AdhocService(name="Boat", price_per_person=40)]),
    ],
)
def test_all_numbers_are_finite_for_valid_inputs(
    students, teachers, destination, duration, pricing, costs, services
):
    result = _calc(
        students,
        teachers,
        destination=destination,
        duration=duration,
        custom_pricing=pricing,
        internal_costs=costs,
        adhoc_services=services,
    )

    for number in _walk_numbers(result.model_dump()):
        assert math.isfinite(number)


@pytest.mark.parametrize(
    "students, teachers, duration",
    [
        (10, 1, "9" * 400 + " days"),
        (10 ** 400, 0, "7 days"),
        (5, 10 ** 400, "7 days"),
    ],
)
def test_oversized_counts_give_non_finite_numbers_without_raising(students, teachers, duration):
    result = _calc(students, teachers, duration=duration, custom_pricing=FULL_PRICING)

    assert math.isinf(result.subtotal)
    assert not all(math.isfinite(n) for n in _walk_numbers(result.model_dump()))


def test_nan_input_propagates_without_raising():
    pricing = CustomPricing(student_accommodation_per_day=float("nan"))
    result = _calc(10, 1, custom_pricing=pricing)
    assert math.isnan(result.student.total_per_student)
    assert math.isnan(result.total)


def test_calculate_for_trip_matches_positional_call():
    trip = TripParameters(
        destination="Porto",
        duration="16 days",
        number_of_students=42,
        number_of_teachers=4,
        trip_type="educational",
    )
    pricing = CustomPricing(student_accommodation_per_day=30, dinner_per_day=11)
    assert calculate_for_trip(trip, custom_pricing=pricing) == calculate_quote_cost(
        "Porto", "16 days", 42, 4, custom_pricing=pricing
    )
