"""
Costing Engine - Core business logic for pricing educational trips.

Turns trip parameters into a full price / cost / margin breakdown:
- Student and teacher cost lines (daily rates × days + flat per-person totals)
- Teacher meal discount per destination country
- Ad hoc services priced per participant
- Tiered, non-stacking group discounts
- Erasmus+ subsidy estimate (informational, never deducted from the price)
- Internal supplier costs and profitability with VAT backed out

The engine is a pure function: no I/O, no state, and it never raises.
Missing values fall back to the defaults declared on CustomPricing and
InternalCosts; validation of raw user input belongs to the API layer.
"""

import logging
import math
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from app.services.destination_resolver import Country, resolve_country
from app.services.rate_tables import DEFAULT_RATE_TABLES, ErasmusGroup, RateTables

logger = logging.getLogger(__name__)

DEFAULT_DURATION_DAYS = 7

# ASCII only: Arabic-Indic and other Unicode digits are not durations
_DIGITS = re.compile(r"(\d+)", re.ASCII)

# Durations with more digits are past the float range; they are capped
# there so arithmetic gives inf instead of failing on int conversion.
_MAX_DURATION_DIGITS = 309
_DURATION_CAP = 10 ** _MAX_DURATION_DIGITS


# ============================================================================
# Inputs
# ============================================================================

class CustomPricing(BaseModel):
    """Client-facing rates entered per quote (EUR, per person)."""

    model_config = ConfigDict(frozen=True)

    # Per day
    student_accommodation_per_day: float = 0.0
    teacher_accommodation_per_day: float = 0.0
    breakfast_per_day: float = 0.0
    lunch_per_day: float = 0.0
    dinner_per_day: float = 0.0
    # Per trip
    transport_card_total: float = 0.0
    student_coordination_fee_total: float = 0.0
    teacher_coordination_fee_total: float = 0.0
    airport_transfer_per_person: float = 0.0


class InternalCosts(BaseModel):
    """Agency supplier costs, used for profitability only (EUR)."""

    model_config = ConfigDict(frozen=True)

    # Per day, per person
    cost_student_accommodation_per_day: float = 0.0
    cost_teacher_accommodation_per_day: float = 0.0
    cost_breakfast_per_day: float = 0.0
    cost_lunch_per_day: float = 0.0
    cost_dinner_per_day: float = 0.0
    # Per trip, per person
    cost_local_transportation_card: float = 0.0
    cost_student_coordination: float = 60.0
    cost_teacher_coordination: float = 0.0
    # Per trip, flat
    cost_local_coordinator: float = 150.0


# Single place where the default policy can be audited
CUSTOM_PRICING_DEFAULTS = CustomPricing().model_dump()
INTERNAL_COST_DEFAULTS = InternalCosts().model_dump()


class AdhocService(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    price_per_person: float = 0.0


class TripParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: str
    duration: str
    number_of_students: int = 0
    number_of_teachers: int = 0
    # Accepted for completeness; pricing does not depend on it
    trip_type: Optional[str] = None


# ============================================================================
# Output
# ============================================================================

class StudentTotals(BaseModel):
    accommodation: float
    meals: float
    transport_card: float
    coordination_fee: float
    airport_transfer: float
    total_per_student: float
    total_for_all_students: float


class TeacherTotals(BaseModel):
    accommodation: float
    meals: float
    transport_card: float
    coordination_fee: float
    airport_transfer: float
    teacher_discount: float
    total_per_teacher: float
    total_for_all_teachers: float


class AdditionalServiceLine(BaseModel):
    name: str
    price_per_person: float
    participants: int
    total: float


class AdditionalServicesTotals(BaseModel):
    services: List[AdditionalServiceLine]
    total: float


class GroupDiscountApplied(BaseModel):
    percentage: float
    amount: float
    description: str
    min_size: int


class ErasmusFunding(BaseModel):
    group: ErasmusGroup
    days: int
    funding_per_student: float
    funding_per_teacher: float
    student_funding: float
    teacher_funding: float
    total_funding: float


class InternalCostTotals(BaseModel):
    student_accommodation: float
    teacher_accommodation: float
    meals: float
    local_transportation: float
    coordination: float
    local_coordinator: float
    total_costs: float


class Profitability(BaseModel):
    revenue: float
    costs: float
    gross_profit: float
    net_profit: float
    vat: float
    gross_margin_percentage: float
    net_margin_percentage: float


class CostBreakdown(BaseModel):
    country: Country
    days: int
    student: StudentTotals
    teacher: TeacherTotals
    additional_services: AdditionalServicesTotals
    group_discount: Optional[GroupDiscountApplied] = None
    erasmus_funding: Optional[ErasmusFunding] = None
    internal_costs: InternalCostTotals
    profitability: Profitability
    subtotal: float
    total: float
    net_cost_after_erasmus: float
    price_per_student: float
    price_per_teacher: float


# ============================================================================
# Helpers
# ============================================================================

def parse_duration(duration: Optional[str]) -> int:
    """Number of days from text like "7 days"; 7 when no digits are found."""
    match = _DIGITS.search(duration or "")
    if not match:
        return DEFAULT_DURATION_DAYS
    digits = match.group(1).lstrip("0") or "0"
    if len(digits) > _MAX_DURATION_DIGITS:
        return _DURATION_CAP
    return int(digits)


def round_half_up(value: float) -> float:
    """
    Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2).

    Non-finite values are returned unchanged.
    """
    if not math.isfinite(value):
        return value
    floor = math.floor(value)
    # value + 0.5 would round 0.49999999999999994 up to 1
    return floor + 1 if value - floor >= 0.5 else floor


def _as_float(count: int) -> float:
    """Counts as floats; beyond the float range they become infinite."""
    try:
        return float(count)
    except OverflowError:
        return math.copysign(math.inf, count)


def _percentage(part: float, whole: float) -> float:
    return part / whole * 100 if whole != 0 else 0.0


# ============================================================================
# Calculator
# ============================================================================

def calculate_quote_cost(
    destination: str,
    duration: str,
    number_of_students: int,
    number_of_teachers: int,
    adhoc_services: Sequence[AdhocService] = (),
    custom_pricing: Optional[CustomPricing] = None,
    internal_costs: Optional[InternalCosts] = None,
    *,
    rate_tables: RateTables = DEFAULT_RATE_TABLES,
) -> CostBreakdown:
    """
    Compute the full cost breakdown of a quote.

    Args:
        destination: Free-text destination, resolved to a pricing country
        duration: Text such as "7 days"; defaults to 7 days without digits
        number_of_students: Student headcount
        number_of_teachers: Teacher headcount
        adhoc_services: Extra lines priced per participant
        custom_pricing: Client-facing rates (all default to 0)
        internal_costs: Supplier costs (see InternalCosts for defaults)
        rate_tables: Reference tables, injectable for tests

    Returns:
        CostBreakdown. Only total_per_student, total_per_teacher and
        net_cost_after_erasmus are rounded; every other amount is left
        as computed.
    """
    pricing = custom_pricing or CustomPricing()
    costs = internal_costs or InternalCosts()

    # 1. Country and reference rates
    country = resolve_country(destination)
    destination_rates = rate_tables.destination_rates(country)
    teacher_discount = destination_rates.teacher_discount

    # 2. Duration
    days = parse_duration(duration)
    total_participants = number_of_students + number_of_teachers

    # Arithmetic runs on floats so oversized counts give inf, never OverflowError
    n_days = _as_float(days)
    students = _as_float(number_of_students)
    teachers = _as_float(number_of_teachers)
    participants = _as_float(total_participants)

    # 3. Rates
    student_accommodation_rate = pricing.student_accommodation_per_day
    teacher_accommodation_rate = pricing.teacher_accommodation_per_day
    meals_rate = pricing.breakfast_per_day + pricing.lunch_per_day + pricing.dinner_per_day
    teacher_meals_rate = meals_rate * teacher_discount
    transport_card = pricing.transport_card_total
    coordination_fee = pricing.student_coordination_fee_total
    airport_transfer = pricing.airport_transfer_per_person

    # 4. Students
    student_accommodation = student_accommodation_rate * n_days * students
    student_meals = meals_rate * n_days * students
    student_transport = transport_card * students
    student_coordination = coordination_fee * students
    student_airport = airport_transfer * students

    student = StudentTotals(
        accommodation=student_accommodation,
        meals=student_meals,
        transport_card=student_transport,
        coordination_fee=student_coordination,
        airport_transfer=student_airport,
        total_per_student=round_half_up(
            (student_accommodation_rate + meals_rate) * n_days
            + transport_card + coordination_fee + airport_transfer
        ),
        total_for_all_students=(
            student_accommodation + student_meals + student_transport
            + student_coordination + student_airport
        ),
    )

    # 5. Teachers - discount on meals only; flat amounts shared with students
    teacher_accommodation = teacher_accommodation_rate * n_days * teachers
    teacher_meals = teacher_meals_rate * n_days * teachers
    teacher_transport = transport_card * teachers
    teacher_coordination = coordination_fee * teachers
    teacher_airport = airport_transfer * teachers

    teacher = TeacherTotals(
        accommodation=teacher_accommodation,
        meals=teacher_meals,
        transport_card=teacher_transport,
        coordination_fee=teacher_coordination,
        airport_transfer=teacher_airport,
        teacher_discount=teacher_discount,
        total_per_teacher=round_half_up(
            (teacher_accommodation_rate + teacher_meals_rate) * n_days
            + transport_card + coordination_fee + airport_transfer
        ),
        total_for_all_teachers=(
            teacher_accommodation + teacher_meals + teacher_transport
            + teacher_coordination + teacher_airport
        ),
    )

    # 6. Ad hoc services
    service_lines = [
        AdditionalServiceLine(
            name=service.name,
            price_per_person=service.price_per_person,
            participants=total_participants,
            total=service.price_per_person * participants,
        )
        for service in adhoc_services
    ]
    additional_services = AdditionalServicesTotals(
        services=service_lines,
        total=sum((line.total for line in service_lines), 0.0),
    )

    # 7. Subtotal
    subtotal = (
        student.total_for_all_students
        + teacher.total_for_all_teachers
        + additional_services.total
    )

    # 8. Group discount
    group_discount = None
    tier = rate_tables.select_group_discount(total_participants)
    if tier is not None:
        group_discount = GroupDiscountApplied(
            percentage=tier.discount * 100,
            amount=subtotal * tier.discount,
            description=tier.description,
            min_size=tier.min_size,
        )

    # 9. Erasmus+ funding (informational)
    erasmus_funding = None
    erasmus_group = rate_tables.erasmus_group_for(country.value)
    erasmus_rates = rate_tables.erasmus_rates.get(erasmus_group) if erasmus_group else None
    if erasmus_rates is not None:
        per_student = erasmus_rates.funding_per_person(n_days, "student")
        per_teacher = erasmus_rates.funding_per_person(n_days, "teacher")
        student_funding = per_student * students
        teacher_funding = per_teacher * teachers
        erasmus_funding = ErasmusFunding(
            group=erasmus_group,
            days=days,
            funding_per_student=per_student,
            funding_per_teacher=per_teacher,
            student_funding=student_funding,
            teacher_funding=teacher_funding,
            total_funding=student_funding + teacher_funding,
        )
    else:
        logger.debug(f"No Erasmus+ group for {country.value}, funding omitted")

    # 10. Internal costs
    internal_meals_rate = costs.cost_breakfast_per_day + costs.cost_lunch_per_day + costs.cost_dinner_per_day
    internal_student_accommodation = costs.cost_student_accommodation_per_day * n_days * students
    internal_teacher_accommodation = costs.cost_teacher_accommodation_per_day * n_days * teachers
    internal_meals = internal_meals_rate * n_days * participants
    internal_transport = costs.cost_local_transportation_card * participants
    internal_coordination = (
        costs.cost_student_coordination * students
        + costs.cost_teacher_coordination * teachers
    )
    # One coordinator per trip, whatever the group size
    internal_local_coordinator = costs.cost_local_coordinator

    internal = InternalCostTotals(
        student_accommodation=internal_student_accommodation,
        teacher_accommodation=internal_teacher_accommodation,
        meals=internal_meals,
        local_transportation=internal_transport,
        coordination=internal_coordination,
        local_coordinator=internal_local_coordinator,
        total_costs=(
            internal_student_accommodation + internal_teacher_accommodation
            + internal_meals + internal_transport
            + internal_coordination + internal_local_coordinator
        ),
    )

    # 11. Client price - Erasmus+ is never deducted here
    total = subtotal - (group_discount.amount if group_discount else 0.0)

    # 12. Net cost after Erasmus+
    net_cost_after_erasmus = round_half_up(
        total - (erasmus_funding.total_funding if erasmus_funding else 0.0)
    )

    # 13. Profitability - VAT is assumed embedded in the gross profit
    gross_profit = total - internal.total_costs
    net_profit = gross_profit / (1 + rate_tables.vat_rate)
    profitability = Profitability(
        revenue=total,
        costs=internal.total_costs,
        gross_profit=gross_profit,
        net_profit=net_profit,
        vat=gross_profit - net_profit,
        gross_margin_percentage=_percentage(gross_profit, total),
        net_margin_percentage=_percentage(net_profit, total),
    )

    # 14. Result
    return CostBreakdown(
        country=country,
        days=days,
        student=student,
        teacher=teacher,
        additional_services=additional_services,
        group_discount=group_discount,
        erasmus_funding=erasmus_funding,
        internal_costs=internal,
        profitability=profitability,
        subtotal=subtotal,
        total=total,
        net_cost_after_erasmus=net_cost_after_erasmus,
        price_per_student=student.total_per_student,
        price_per_teacher=teacher.total_per_teacher,
    )


def calculate_for_trip(
    trip: TripParameters,
    adhoc_services: Sequence[AdhocService] = (),
    custom_pricing: Optional[CustomPricing] = None,
    internal_costs: Optional[InternalCosts] = None,
    *,
    rate_tables: RateTables = DEFAULT_RATE_TABLES,
) -> CostBreakdown:
    """calculate_quote_cost for a TripParameters value."""
    return calculate_quote_cost(
        trip.destination,
        trip.duration,
        trip.number_of_students,
        trip.number_of_teachers,
        adhoc_services,
        custom_pricing,
        internal_costs,
        rate_tables=rate_tables,
    )
