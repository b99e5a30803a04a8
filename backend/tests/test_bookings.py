"""
Tests for booking endpoints: reservation, finish, cancel and history.
"""

import pytest
from httpx import AsyncClient


async def _book(client: AsyncClient, spot_id: str, user_id: str = "driver-1"):
    return await client.post(
        "/api/v1/bookings/",
        json={"user_id": user_id, "spot_id": spot_id},
    )


@pytest.mark.asyncio
async def test_book_spot(client: AsyncClient, test_spot):
    """Successful booking takes the spot off the market."""
    response = await _book(client, test_spot.id)
    assert response.status_code == 201
    data = response.json()
    assert data["spot_id"] == test_spot.id
    assert data["user_id"] == "driver-1"
    assert data["status"] == "active"
    assert data["end_time"] is None
    assert data["total_cost"] == 0
    assert data["payment_method"] == "pending"
    assert data["spot"]["available"] is False

    # Verify the spot is now taken
    spot_response = await client.get(f"/api/v1/spots/{test_spot.id}")
    assert spot_response.json()["available"] is False


@pytest.mark.asyncio
async def test_book_taken_spot(client: AsyncClient, test_spot):
    """Booking a spot someone already holds returns 409."""
    first = await _book(client, test_spot.id, "driver-1")
    assert first.status_code == 201

    second = await _book(client, test_spot.id, "driver-2")
    assert second.status_code == 409
    assert second.json()["code"] == "spot_unavailable"


@pytest.mark.asyncio
async def test_same_user_cannot_double_book(client: AsyncClient, test_spot):
    await _book(client, test_spot.id)
    response = await _book(client, test_spot.id)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_book_nonexistent_spot(client: AsyncClient):
    """A spot that does not exist is reported as unavailable."""
    response = await _book(client, "no-such-spot")
    assert response.status_code == 409
    assert response.json()["code"] == "spot_unavailable"


@pytest.mark.asyncio
async def test_book_requires_user_and_spot(client: AsyncClient, test_spot):
    response = await client.post("/api/v1/bookings/", json={"spot_id": test_spot.id})
    assert response.status_code == 422

    response = await client.post("/api/v1/bookings/", json={"user_id": "", "spot_id": test_spot.id})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_finish_booking(client: AsyncClient, test_spot):
    """Finishing bills the session and releases the spot."""
    booking_id = (await _book(client, test_spot.id)).json()["id"]

    response = await client.post(f"/api/v1/bookings/{booking_id}/finish")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["end_time"] is not None
    assert data["payment_method"] == "card"
    # Finished within the first quarter hour at 10.00/h
    assert data["total_cost"] in (0.0, 2.5)
    assert data["spot"]["available"] is True

    spot_response = await client.get(f"/api/v1/spots/{test_spot.id}")
    assert spot_response.json()["available"] is True


@pytest.mark.asyncio
async def test_finish_twice(client: AsyncClient, test_spot):
    """A completed booking cannot be finished again."""
    booking_id = (await _book(client, test_spot.id)).json()["id"]
    await client.post(f"/api/v1/bookings/{booking_id}/finish")

    response = await client.post(f"/api/v1/bookings/{booking_id}/finish")
    assert response.status_code == 409
    assert response.json()["code"] == "invalid_state"


@pytest.mark.asyncio
async def test_cancel_booking(client: AsyncClient, test_spot):
    """Cancellation is free and returns the spot to the market."""
    booking_id = (await _book(client, test_spot.id)).json()["id"]

    cancel_response = await client.delete(f"/api/v1/bookings/{booking_id}")
    assert cancel_response.status_code == 200
    data = cancel_response.json()
    assert data["status"] == "cancelled"
    assert data["total_cost"] == 0
    assert data["end_time"] is not None

    spot_response = await client.get(f"/api/v1/spots/{test_spot.id}")
    assert spot_response.json()["available"] is True


@pytest.mark.asyncio
async def test_cancel_already_cancelled(client: AsyncClient, test_spot):
    """Double-cancelling returns 409."""
    booking_id = (await _book(client, test_spot.id)).json()["id"]
    await client.delete(f"/api/v1/bookings/{booking_id}")

    response = await client.delete(f"/api/v1/bookings/{booking_id}")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_rebook_after_release(client: AsyncClient, test_spot):
    booking_id = (await _book(client, test_spot.id, "driver-1")).json()["id"]
    await client.delete(f"/api/v1/bookings/{booking_id}")

    response = await _book(client, test_spot.id, "driver-2")
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_unknown_booking(client: AsyncClient):
    response = await client.post("/api/v1/bookings/missing/finish")
    assert response.status_code == 404
    assert response.json()["code"] == "booking_not_found"

    response = await client.delete("/api/v1/bookings/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_user_bookings(client: AsyncClient, test_spot, free_spot):
    """A user sees only their own bookings."""
    await _book(client, test_spot.id, "driver-1")
    await _book(client, free_spot.id, "driver-2")

    response = await client.get("/api/v1/bookings/", params={"user_id": "driver-1"})
    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["spot_id"] == test_spot.id
    assert data[0]["spot"]["name"] == test_spot.name


@pytest.mark.asyncio
async def test_list_bookings_requires_user(client: AsyncClient):
    response = await client.get("/api/v1/bookings/")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/api/v1/bookings/", params={"user_id": "x"}, headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert "X-Response-Time" in response.headers
