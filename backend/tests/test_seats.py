"""
Tests for the seat registry: registration, ordering, notes and deletion.
"""

import pytest
from sqlalchemy import func, select

from ticket_manager.core.exceptions import ConflictError, NotFoundError, ValidationError
from ticket_manager.models.seat import Seat
from ticket_manager.services import inventory_service, seat_service
from ticket_manager.services.inventory_service import natural_key

from tests.conftest import race


@pytest.mark.asyncio
async def test_register_range_creates_seats(db_session):
    seats = await seat_service.register_seats(db_session, "121", "E", 1, 4, notes="aisle pair")
    assert [s.seat for s in seats] == ["1", "2", "3", "4"]
    assert all(s.section == "121" and s.row == "E" for s in seats)
    assert all(s.notes == "aisle pair" for s in seats)


@pytest.mark.asyncio
async def test_register_rejects_reversed_range(db_session):
    with pytest.raises(ValidationError):
        await seat_service.register_seats(db_session, "121", "E", 5, 1)


@pytest.mark.asyncio
async def test_register_rejects_oversized_batch(db_session):
    with pytest.raises(ValidationError):
        await seat_service.register_seats(db_session, "121", "E", 1, 51)


@pytest.mark.asyncio
async def test_register_rejects_blank_section(db_session):
    with pytest.raises(ValidationError) as exc:
        await seat_service.register_seats(db_session, "  ", "E", 1, 2)
    assert exc.value.details["field"] == "section"


@pytest.mark.asyncio
async def test_overlapping_range_is_all_or_nothing(db_session):
    """A range touching one existing seat creates none of its seats."""
    await seat_service.register_seats(db_session, "121", "E", 3, 3)

    with pytest.raises(ConflictError) as exc:
        await seat_service.register_seats(db_session, "121", "E", 1, 5)
    assert exc.value.details["seats"] == ["3"]

    count = (await db_session.execute(select(func.count(Seat.id)))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_single_seat_with_arbitrary_label(db_session):
    seat = await seat_service.register_seat(db_session, "VIP", "1", "A12")
    assert seat.label == "VIP/1/A12"

    with pytest.raises(ConflictError):
        await seat_service.register_seat(db_session, "VIP", "1", "A12")


@pytest.mark.asyncio
async def test_list_seats_numeric_aware_order(db_session):
    await seat_service.register_seats(db_session, "121", "E", 9, 11)
    await seat_service.register_seat(db_session, "121", "E", "2")
    await seat_service.register_seat(db_session, "121", "E", "B")
    await seat_service.register_seat(db_session, "121", "E", "A")
    await seat_service.register_seats(db_session, "9", "A", 1, 1)

    seats = await seat_service.list_seats(db_session)
    assert [(s.section, s.seat) for s in seats] == [
        ("9", "1"),
        ("121", "2"),
        ("121", "9"),
        ("121", "10"),
        ("121", "11"),
        ("121", "A"),
        ("121", "B"),
    ]


def test_natural_key_orders_numbers_before_letters():
    labels = ["10", "A", "2", "A10", "A9", "1"]
    assert sorted(labels, key=natural_key) == ["1", "2", "10", "A", "A9", "A10"]


@pytest.mark.asyncio
async def test_update_group_notes(db_session):
    await seat_service.register_seats(db_session, "121", "E", 1, 3)
    await seat_service.register_seats(db_session, "121", "F", 1, 1)

    updated = await seat_service.update_group_notes(db_session, "121", "E", "obstructed view")
    assert len(updated) == 3
    assert {s.notes for s in updated} == {"obstructed view"}

    other = await seat_service.list_group(db_session, "121", "F")
    assert other[0].notes is None


@pytest.mark.asyncio
async def test_update_group_notes_empty_group(db_session):
    assert await seat_service.update_group_notes(db_session, "999", "Z", "nothing") == []


@pytest.mark.asyncio
async def test_update_group_notes_strips_identifiers(db_session):
    await seat_service.register_seats(db_session, "121", "E", 1, 2)

    updated = await seat_service.update_group_notes(db_session, " 121", "E ", "padded")
    assert [s.notes for s in updated] == ["padded", "padded"]

    with pytest.raises(ValidationError) as exc:
        await seat_service.update_group_notes(db_session, "121", "  ", "blank")
    assert exc.value.details["field"] == "row"


@pytest.mark.asyncio
async def test_concurrent_registration_of_same_seats_has_one_winner(engine, db_session):
    outcomes = await race(
        engine,
        *[lambda s: seat_service.register_seats(s, "121", "E", 1, 2) for _ in range(4)],
    )

    winners = [o for o in outcomes if isinstance(o, list)]
    assert len(winners) == 1
    assert [s.seat for s in winners[0]] == ["1", "2"]
    assert sum(isinstance(o, ConflictError) for o in outcomes) == 3

    count = (await db_session.execute(select(func.count(Seat.id)))).scalar_one()
    assert count == 2


@pytest.mark.asyncio
async def test_update_seat_notes(db_session):
    seat = await seat_service.register_seat(db_session, "121", "E", "1")
    updated = await seat_service.update_seat_notes(db_session, seat.id, "wheelchair access")
    assert updated.notes == "wheelchair access"

    with pytest.raises(NotFoundError):
        await seat_service.update_seat_notes(db_session, 9999, "x")


@pytest.mark.asyncio
async def test_delete_seat_removes_its_tickets(db_session, schedule, seats):
    seat_id = seats[0].id
    assert await inventory_service.count_tickets(db_session) == 4

    removed = await seat_service.delete_seat(db_session, seat_id)

    assert removed == 2
    assert await inventory_service.count_tickets(db_session) == 2
    with pytest.raises(NotFoundError):
        await seat_service.get_seat(db_session, seat_id)


@pytest.mark.asyncio
async def test_delete_missing_seat(db_session):
    with pytest.raises(NotFoundError):
        await seat_service.delete_seat(db_session, 424242)
