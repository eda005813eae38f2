async def test_calculate_returns_full_breakdown(client):
    response = await client.post("/costing/calculate", json={
        "destination": "Madrid, Spain",
        "duration": "7 days",
        "number_of_students": 30,
        "number_of_teachers": 2,
        "custom_pricing": {
            "student_accommodation_per_day": 35,
            "breakfast_per_day": 5,
            "transport_card_total": 10,
        },
    })
    assert response.status_code == 200, response.text
    body = response.json()

    assert body["country"] == "Spain"
    assert body["price_per_student"] == 290
    assert body["price_per_teacher"] == 36
    assert body["group_discount"]["min_size"] == 30
    assert body["erasmus_funding"]["group"] == "Group 2"
    assert body["internal_costs"]["local_coordinator"] == 150


async def test_calculate_with_empty_body_uses_defaults(client):
    response = await client.post("/costing/calculate", json={})
    assert response.status_code == 200
    body = response.json()
    assert body["country"] == "Spain"
    assert body["days"] == 7
    assert body["total"] == 0


async def test_calculate_rejects_negative_amounts(client):
    response = await client.post("/costing/calculate", json={
        "custom_pricing": {"breakfast_per_day": -1},
    })
    assert response.status_code == 422

    response = await client.post("/costing/calculate", json={"number_of_students": -3})
    assert response.status_code == 422


async def test_calculate_rejects_nan_and_infinity(client):
    for token in ("NaN", "Infinity"):
        response = await client.post(
            "/costing/calculate",
            content=f'{{"internal_costs": {{"cost_lunch_per_day": {token}}}}}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 422


async def test_list_destinations(client):
    response = await client.get("/costing/destinations")
    assert response.status_code == 200
    by_country = {d["country"]: d for d in response.json()}

    assert len(by_country) == 9
    assert by_country["United Kingdom"]["teacher_discount"] == 0.65
    assert by_country["United Kingdom"]["erasmus_group"] == "Group 2"
    assert by_country["Poland"]["erasmus_group"] == "Group 3"


async def test_resolve_destination(client):
    response = await client.get("/costing/resolve", params={"destination": "Budapest"})
    assert response.json() == {"destination": "Budapest", "country": "Hungary"}

    response = await client.get("/costing/resolve")
    assert response.json()["country"] == "Spain"


async def test_group_discounts(client):
    response = await client.get("/costing/group-discounts")
    assert [t["min_size"] for t in response.json()] == [30, 40, 50]


async def test_health(client):
    response = await client.get("/")
    assert response.json()["status"] == "healthy"
