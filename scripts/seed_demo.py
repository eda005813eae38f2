"""
Seed script - Creates demo data for development.

Run with: python -m scripts.seed_demo
(after `alembic upgrade head`)
"""

import asyncio
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session_maker
from app.models.client import Client
from app.models.quote import Quote
from app.services.quotation_calculator import refresh_quote_prices
from app.services.quote_numbering import get_next_quote_number


async def create_clients(db: AsyncSession) -> dict:
    """Create demo schools."""
    clients = {}
    client_data = [
        ("Lycée Jean Moulin", "FR12345678901", "contact@lycee-jeanmoulin.fr", "France", "Lyon", "69003", "12 rue Garibaldi"),
        ("Gymnasium am Park", "DE123456789", "sekretariat@gym-am-park.de", "Germany", "Köln", "50667", "Parkstraße 4"),
        ("Szkoła Podstawowa nr 7", "PL5260001246", "biuro@sp7.edu.pl", "Poland", "Kraków", "30-001", "ul. Długa 7"),
    ]

    for fiscal_name, tax_id, email, country, city, postcode, address in client_data:
        client = Client(
            fiscal_name=fiscal_name,
            tax_id=tax_id,
            email=email,
            country=country,
            city=city,
            postcode=postcode,
            address=address,
        )
        db.add(client)
        clients[fiscal_name] = client

    await db.flush()
    print(f"✅ Created {len(clients)} clients")
    return clients


async def create_quotes(db: AsyncSession, clients: dict) -> list[Quote]:
    """Create demo quotes, priced by the costing engine."""
    start = date.today() + timedelta(days=90)
    quote_data = [
        {
            "client": clients["Lycée Jean Moulin"],
            "destination": "Madrid, Spain",
            "days": 7,
            "number_of_students": 25,
            "number_of_teachers": 2,
            "pricing": {
                "student_accommodation_per_day": 35,
                "teacher_accommodation_per_day": 50,
                "breakfast_per_day": 5,
                "lunch_per_day": 10,
                "dinner_per_day": 12,
                "transport_card_total": 20,
                "student_coordination_fee_total": 100,
                "airport_transfer_per_person": 15,
            },
            "costs": {
                "cost_student_accommodation_per_day": 25,
                "cost_teacher_accommodation_per_day": 40,
                "cost_breakfast_per_day": 3,
                "cost_lunch_per_day": 7,
                "cost_dinner_per_day": 9,
                "cost_local_transportation_card": 15,
            },
            "adhoc_services": [{"name": "Prado museum visit", "price_per_person": 12}],
        },
        {
            "client": clients["Gymnasium am Park"],
            "destination": "Porto",
            "days": 16,
            "number_of_students": 42,
            "number_of_teachers": 4,
            "pricing": {
                "student_accommodation_per_day": 30,
                "teacher_accommodation_per_day": 45,
                "breakfast_per_day": 4,
                "lunch_per_day": 9,
                "dinner_per_day": 11,
                "transport_card_total": 25,
                "student_coordination_fee_total": 120,
                "airport_transfer_per_person": 18,
            },
            "costs": {
                "cost_student_accommodation_per_day": 22,
                "cost_teacher_accommodation_per_day": 35,
                "cost_local_transportation_card": 18,
            },
            "adhoc_services": [],
        },
        {
            "client": clients["Szkoła Podstawowa nr 7"],
            "destination": "Dublin, Ireland",
            "days": 5,
            "number_of_students": 18,
            "number_of_teachers": 2,
            "pricing": {
                "student_accommodation_per_day": 45,
                "teacher_accommodation_per_day": 65,
                "breakfast_per_day": 7,
                "lunch_per_day": 12,
                "dinner_per_day": 15,
                "transport_card_total": 30,
                "student_coordination_fee_total": 110,
                "airport_transfer_per_person": 20,
            },
            "costs": {},
            "adhoc_services": [{"name": "Cliffs of Moher day trip", "price_per_person": 45}],
        },
    ]

    quotes = []
    for data in quote_data:
        client = data["client"]
        quote_number, _ = await get_next_quote_number(db)
        quote = Quote(
            quote_number=quote_number,
            client_id=client.id,
            destination=data["destination"],
            start_date=start,
            end_date=start + timedelta(days=data["days"]),
            duration=f"{data['days']} days",
            number_of_students=data["number_of_students"],
            number_of_teachers=data["number_of_teachers"],
            school_name=client.fiscal_name,
            school_address=f"{client.address}, {client.postcode} {client.city}, {client.country}",
            adhoc_services=data["adhoc_services"],
            **data["pricing"],
            **data["costs"],
        )
        breakdown = refresh_quote_prices(quote)
        db.add(quote)
        quotes.append(quote)
        print(
            f"   {quote.quote_number}: {quote.destination} -> {breakdown.country.value}, "
            f"total {breakdown.total:.0f} EUR, gross margin "
            f"{breakdown.profitability.gross_margin_percentage:.1f}%"
        )

    await db.flush()
    print(f"✅ Created {len(quotes)} quotes")
    return quotes


async def seed_demo_data():
    """Main seed function."""
    print("🌱 Starting demo data seed...")

    async with async_session_maker() as db:
        # Check if data already exists
        result = await db.execute(select(Client).limit(1))
        if result.scalar_one_or_none():
            print("⚠️  Data already exists. Skipping seed.")
            return

        clients = await create_clients(db)
        await create_quotes(db, clients)

        await db.commit()
        print("✅ Demo data seed completed!")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
