"""
Costing endpoints - stateless price calculation for the quote form.

The form recalculates on every keystroke, so nothing here touches the
database. Request schemas reject negative, NaN and infinite amounts; the
engine itself never validates.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.api.deps import Rates
from app.services.costing_engine import (
    AdhocService,
    CostBreakdown,
    CustomPricing,
    InternalCosts,
    calculate_quote_cost,
)
from app.services.destination_resolver import Country, resolve_country
from app.services.rate_tables import ErasmusGroup, GroupDiscountTier

router = APIRouter()

Amount = Annotated[float, Field(ge=0, allow_inf_nan=False)]
Headcount = Annotated[int, Field(ge=0, le=10000)]


# ============ SCHEMAS ============

class CustomPricingInput(BaseModel):
    student_accommodation_per_day: Optional[Amount] = None
    teacher_accommodation_per_day: Optional[Amount] = None
    breakfast_per_day: Optional[Amount] = None
    lunch_per_day: Optional[Amount] = None
    dinner_per_day: Optional[Amount] = None
    transport_card_total: Optional[Amount] = None
    student_coordination_fee_total: Optional[Amount] = None
    teacher_coordination_fee_total: Optional[Amount] = None
    airport_transfer_per_person: Optional[Amount] = None

    def to_engine(self) -> CustomPricing:
        return CustomPricing(**self.model_dump(exclude_none=True))


class InternalCostsInput(BaseModel):
    cost_student_accommodation_per_day: Optional[Amount] = None
    cost_teacher_accommodation_per_day: Optional[Amount] = None
    cost_breakfast_per_day: Optional[Amount] = None
    cost_lunch_per_day: Optional[Amount] = None
    cost_dinner_per_day: Optional[Amount] = None
    cost_local_transportation_card: Optional[Amount] = None
    cost_student_coordination: Optional[Amount] = None
    cost_teacher_coordination: Optional[Amount] = None
    cost_local_coordinator: Optional[Amount] = None

    def to_engine(self) -> InternalCosts:
        return InternalCosts(**self.model_dump(exclude_none=True))


class AdhocServiceInput(BaseModel):
    name: str = Field(..., max_length=255)
    price_per_person: Amount = 0.0

    def to_engine(self) -> AdhocService:
        return AdhocService(name=self.name, price_per_person=self.price_per_person)


class CostingRequest(BaseModel):
    destination: str = Field("", max_length=255)
    duration: str = Field("7 days", max_length=50)
    number_of_students: Headcount = 0
    number_of_teachers: Headcount = 0
    trip_type: Optional[str] = None
    adhoc_services: List[AdhocServiceInput] = []
    custom_pricing: Optional[CustomPricingInput] = None
    internal_costs: Optional[InternalCostsInput] = None


class DestinationInfo(BaseModel):
    country: Country
    teacher_discount: float
    airport_transfer_default: float
    erasmus_group: Optional[ErasmusGroup] = None


class ResolvedDestination(BaseModel):
    destination: str
    country: Country


# ============ ENDPOINTS ============

@router.post("/calculate", response_model=CostBreakdown)
async def calculate_costs(data: CostingRequest, rate_tables: Rates):
    """Full cost breakdown for unsaved quote inputs."""
    return calculate_quote_cost(
        data.destination,
        data.duration,
        data.number_of_students,
        data.number_of_teachers,
        [service.to_engine() for service in data.adhoc_services],
        data.custom_pricing.to_engine() if data.custom_pricing else None,
        data.internal_costs.to_engine() if data.internal_costs else None,
        rate_tables=rate_tables,
    )


@router.get("/destinations", response_model=List[DestinationInfo])
async def list_destinations(rate_tables: Rates):
    """Priced countries with their teacher discount and Erasmus+ group."""
    return [
        DestinationInfo(
            country=country,
            teacher_discount=rate_tables.destination_rates(country).teacher_discount,
            airport_transfer_default=rate_tables.airport_transfer_default(country),
            erasmus_group=rate_tables.erasmus_group_for(country.value),
        )
        for country in Country
    ]


@router.get("/resolve", response_model=ResolvedDestination)
async def resolve_destination(destination: str = ""):
    """Country whose pricing applies to a destination text."""
    return ResolvedDestination(destination=destination, country=resolve_country(destination))


@router.get("/group-discounts", response_model=List[GroupDiscountTier])
async def list_group_discounts(rate_tables: Rates):
    return sorted(rate_tables.group_discounts, key=lambda t: t.min_size)

