"""
Rate tables - static reference data for the costing engine.

Everything the calculator looks up lives in one immutable RateTables value:
- Destination pricing per country (reference daily rates + teacher meal discount)
- Airport transfer defaults per country (reference only)
- Group discount tiers
- Erasmus+ funding groups and daily subsidy rates
- Duration multipliers (legacy reference, not used in calculations)

The calculator receives a RateTables instance as a parameter, so tests and
callers can swap in their own tables without touching module state.
"""

import enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.services.destination_resolver import Country, normalize_country_name


class ErasmusGroup(str, enum.Enum):
    """Erasmus+ cost-of-living groups for receiving countries."""
    GROUP_1 = "Group 1"
    GROUP_2 = "Group 2"
    GROUP_3 = "Group 3"


class DestinationRates(BaseModel):
    """Reference per-person rates for a destination country (EUR)."""

    model_config = ConfigDict(frozen=True)

    accommodation: float
    breakfast: float
    lunch: float
    dinner: float
    transport_card: float
    coordination_fee: float
    # Applied to teacher meals only, never to accommodation
    teacher_discount: float = Field(..., gt=0, le=1)


class GroupDiscountTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_size: int
    discount: float
    description: str


class DailyRate(BaseModel):
    """Erasmus+ daily rate split at the 14-day threshold."""

    model_config = ConfigDict(frozen=True)

    days_1_to_14: float
    day_15_plus: float


class ErasmusRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    student: DailyRate
    teacher: DailyRate

    def funding_per_person(self, days: float, role: Literal["student", "teacher"]) -> float:
        """
        Subsidy for one participant over the whole trip.

        Days 1-14 are paid at the full rate, every day after the 14th at
        the reduced rate.
        """
        rate = self.student if role == "student" else self.teacher
        if days <= 14:
            return rate.days_1_to_14 * days
        return rate.days_1_to_14 * 14 + rate.day_15_plus * (days - 14)


class RateTables(BaseModel):
    """Read-only bundle of every table the costing engine consults."""

    model_config = ConfigDict(frozen=True)

    destination_pricing: Dict[Country, DestinationRates]
    airport_transfer_defaults: Dict[Country, float]
    group_discounts: List[GroupDiscountTier]
    erasmus_rates: Dict[ErasmusGroup, ErasmusRates]
    erasmus_country_groups: Dict[str, ErasmusGroup]
    duration_multipliers: Dict[int, float] = {}
    vat_rate: float = 0.21

    def destination_rates(self, country: Country) -> DestinationRates:
        """Pricing for a country, falling back to Spain when it is missing."""
        rates = self.destination_pricing.get(country)
        if rates is None:
            rates = self.destination_pricing[Country.SPAIN]
        return rates

    def airport_transfer_default(self, country: Country) -> float:
        return self.airport_transfer_defaults.get(country, 0.0)

    def select_group_discount(self, total_participants: int) -> Optional[GroupDiscountTier]:
        """
        Pick the single best tier the group qualifies for.

        Tiers are scanned from the largest minimum size down; the first
        match applies and tiers never stack.
        """
        for tier in sorted(self.group_discounts, key=lambda t: t.min_size, reverse=True):
            if total_participants >= tier.min_size:
                return tier
        return None

    def erasmus_group_for(self, country: str) -> Optional[ErasmusGroup]:
        """Erasmus+ group of a country name ("UK" accepted), None if unmapped."""
        group = self.erasmus_country_groups.get(country)
        if group is None:
            normalized = normalize_country_name(country)
            if normalized is not None:
                group = self.erasmus_country_groups.get(normalized.value)
        return group


# ============================================================================
# Default tables
# ============================================================================

DESTINATION_PRICING: Dict[Country, DestinationRates] = {
    # Central/Eastern Europe - lower cost
    Country.CZECH_REPUBLIC: DestinationRates(
        accommodation=32, breakfast=6, lunch=10, dinner=12,
        transport_card=15, coordination_fee=40, teacher_discount=0.8,
    ),
    Country.HUNGARY: DestinationRates(
        accommodation=30, breakfast=6, lunch=9, dinner=11,
        transport_card=14, coordination_fee=40, teacher_discount=0.8,
    ),
    Country.POLAND: DestinationRates(
        accommodation=28, breakfast=5, lunch=9, dinner=11,
        transport_card=12, coordination_fee=40, teacher_discount=0.8,
    ),
    # Western Europe - medium cost
    Country.DENMARK: DestinationRates(
        accommodation=55, breakfast=10, lunch=16, dinner=20,
        transport_card=35, coordination_fee=60, teacher_discount=0.7,
    ),
    Country.PORTUGAL: DestinationRates(
        accommodation=35, breakfast=6, lunch=11, dinner=13,
        transport_card=20, coordination_fee=45, teacher_discount=0.75,
    ),
    Country.SPAIN: DestinationRates(
        accommodation=38, breakfast=6, lunch=12, dinner=14,
        transport_card=22, coordination_fee=50, teacher_discount=0.75,
    ),
    # Premium destinations - higher cost
    Country.FRANCE: DestinationRates(
        accommodation=50, breakfast=8, lunch=15, dinner=18,
        transport_card=30, coordination_fee=55, teacher_discount=0.7,
    ),
    Country.ITALY: DestinationRates(
        accommodation=48, breakfast=7, lunch=14, dinner=17,
        transport_card=28, coordination_fee=55, teacher_discount=0.7,
    ),
    Country.UNITED_KINGDOM: DestinationRates(
        accommodation=60, breakfast=10, lunch=16, dinner=20,
        transport_card=40, coordination_fee=65, teacher_discount=0.65,
    ),
}

AIRPORT_TRANSFER_DEFAULTS: Dict[Country, float] = {
    Country.CZECH_REPUBLIC: 25,
    Country.HUNGARY: 25,
    Country.POLAND: 22,
    Country.DENMARK: 40,
    Country.PORTUGAL: 28,
    Country.SPAIN: 30,
    Country.FRANCE: 38,
    Country.ITALY: 35,
    Country.UNITED_KINGDOM: 45,
}

GROUP_DISCOUNTS: List[GroupDiscountTier] = [
    GroupDiscountTier(min_size=30, discount=0.05, description="5% discount for groups of 30+"),
    GroupDiscountTier(min_size=40, discount=0.08, description="8% discount for groups of 40+"),
    GroupDiscountTier(min_size=50, discount=0.12, description="12% discount for groups of 50+"),
]

# Individual support per day (EUR), school education mobility
ERASMUS_RATES: Dict[ErasmusGroup, ErasmusRates] = {
    ErasmusGroup.GROUP_1: ErasmusRates(
        student=DailyRate(days_1_to_14=126, day_15_plus=88),
        teacher=DailyRate(days_1_to_14=180, day_15_plus=126),
    ),
    ErasmusGroup.GROUP_2: ErasmusRates(
        student=DailyRate(days_1_to_14=112, day_15_plus=78),
        teacher=DailyRate(days_1_to_14=160, day_15_plus=112),
    ),
    ErasmusGroup.GROUP_3: ErasmusRates(
        student=DailyRate(days_1_to_14=98, day_15_plus=69),
        teacher=DailyRate(days_1_to_14=140, day_15_plus=98),
    ),
}

ERASMUS_COUNTRY_GROUPS: Dict[str, ErasmusGroup] = {
    # Group 1 - higher living costs
    "Denmark": ErasmusGroup.GROUP_1,
    "Finland": ErasmusGroup.GROUP_1,
    "Iceland": ErasmusGroup.GROUP_1,
    "Ireland": ErasmusGroup.GROUP_1,
    "Luxembourg": ErasmusGroup.GROUP_1,
    "Sweden": ErasmusGroup.GROUP_1,
    "Liechtenstein": ErasmusGroup.GROUP_1,
    "Norway": ErasmusGroup.GROUP_1,
    # Group 2 - medium living costs
    "Austria": ErasmusGroup.GROUP_2,
    "Belgium": ErasmusGroup.GROUP_2,
    "Germany": ErasmusGroup.GROUP_2,
    "France": ErasmusGroup.GROUP_2,
    "Italy": ErasmusGroup.GROUP_2,
    "Greece": ErasmusGroup.GROUP_2,
    "Spain": ErasmusGroup.GROUP_2,
    "Cyprus": ErasmusGroup.GROUP_2,
    "Netherlands": ErasmusGroup.GROUP_2,
    "Malta": ErasmusGroup.GROUP_2,
    "Portugal": ErasmusGroup.GROUP_2,
    # Subsidised as Group 2 even though it has its own pricing tier
    "United Kingdom": ErasmusGroup.GROUP_2,
    # Group 3 - lower living costs
    "Bulgaria": ErasmusGroup.GROUP_3,
    "Croatia": ErasmusGroup.GROUP_3,
    "Czech Republic": ErasmusGroup.GROUP_3,
    "Estonia": ErasmusGroup.GROUP_3,
    "Latvia": ErasmusGroup.GROUP_3,
    "Lithuania": ErasmusGroup.GROUP_3,
    "Hungary": ErasmusGroup.GROUP_3,
    "Poland": ErasmusGroup.GROUP_3,
    "Romania": ErasmusGroup.GROUP_3,
    "Serbia": ErasmusGroup.GROUP_3,
    "Slovakia": ErasmusGroup.GROUP_3,
    "Slovenia": ErasmusGroup.GROUP_3,
    "North Macedonia": ErasmusGroup.GROUP_3,
    "Turkey": ErasmusGroup.GROUP_3,
}

# Legacy per-day multipliers from the first pricing model. Kept for
# reference; the calculator works from per-day custom rates instead.
DURATION_MULTIPLIERS: Dict[int, float] = {
    1: 1.0,
    2: 1.8,
    3: 2.5,
    4: 3.2,
    5: 3.8,
    6: 4.4,
    7: 5.0,
    8: 5.5,
    9: 6.0,
    10: 6.4,
    11: 6.8,
    12: 7.2,
    13: 7.5,
    14: 7.8,
}

DEFAULT_RATE_TABLES = RateTables(
    destination_pricing=DESTINATION_PRICING,
    airport_transfer_defaults=AIRPORT_TRANSFER_DEFAULTS,
    group_discounts=GROUP_DISCOUNTS,
    erasmus_rates=ERASMUS_RATES,
    erasmus_country_groups=ERASMUS_COUNTRY_GROUPS,
    duration_multipliers=DURATION_MULTIPLIERS,
    vat_rate=0.21,
)
