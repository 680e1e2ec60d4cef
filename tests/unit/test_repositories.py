"""
Unit tests for repository functions.
Covers users, the event catalog, categories, the registration counter and reports.
"""
import pytest
from datetime import timedelta
from uuid import uuid4

from app.core.clock import today
from app.core.errors import ErrorKind
from app.db.repositories import (
    create_user,
    get_user_by_email,
    get_user,
    delete_user,
    create_event,
    list_events,
    count_events,
    get_event_detail,
    update_event,
    delete_event,
    list_categories,
    create_category,
    delete_category,
    create_registration,
    count_registrations_for_event,
    get_registration_for_pair,
    create_feedback,
    get_stats,
    list_recent_activities,
)
from app.db.models import RoleEnum, EventStatusEnum
from app.schemas import UserCreate, EventCreate


@pytest.mark.unit
@pytest.mark.asyncio
class TestUserRepository:

    async def test_create_user(self, db_session):
        user = await create_user(db_session, UserCreate(
            name="New User", email="NewUser@Example.com", password="Test123!@#",
        ))
        assert user.id is not None
        assert user.email == "newuser@example.com"
        assert user.role == RoleEnum.attendee
        assert user.is_blocked is False
        assert user.hashed_password != "Test123!@#"

    async def test_concurrent_sign_up_with_same_email(self, db_session):
        # Bypasses the service pre-check, as two concurrent sign-ups would
        first = await create_user(db_session, UserCreate(
            name="First", email="race@example.com", password="Test123!@#",
        ))
        first_id = first.id

        second = await create_user(db_session, UserCreate(
            name="Second", email="RACE@example.com", password="Test123!@#",
        ))

        assert second.kind == ErrorKind.conflict
        assert second.message == "Email already registered"
        kept = await get_user_by_email(db_session, "race@example.com")
        assert kept.id == first_id
        assert kept.name == "First"

    async def test_lookup_by_email_ignores_case(self, db_session, attendee):
        user = await get_user_by_email(db_session, attendee.email.upper())
        assert user.id == attendee.id

    async def test_unknown_user(self, db_session):
        assert await get_user(db_session, uuid4()) is None

    async def test_delete_user_releases_seats(self, db_session, attendee, other_attendee, small_event, past_event, make_registration):
        await make_registration(small_event, attendee)
        await make_registration(small_event, other_attendee)
        await make_registration(past_event, attendee)
        await create_feedback(db_session, past_event.id, attendee.id, 4, None)
        attendee_id = attendee.id

        assert await delete_user(db_session, attendee_id) is True

        assert await count_registrations_for_event(db_session, small_event.id) == 1
        assert await count_registrations_for_event(db_session, past_event.id) == 0
        assert await get_user(db_session, attendee_id) is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestEventRepository:

    async def test_create_event(self, db_session, organizer, category):
        payload = EventCreate(
            title="DevFest",
            date=today() + timedelta(days=30),
            max_attendees=100,
            category_id=category.id,
        )
        event = await create_event(db_session, payload, organizer.id)

        detail = await get_event_detail(db_session, event.id)
        assert detail["registered_count"] == 0
        assert detail["available_spots"] == 100
        assert detail["category_name"] == "Technology"
        assert detail["organizer_name"] == organizer.name

    async def test_visibility(self, db_session, organizer, other_organizer, make_event):
        await make_event(organizer, title="Open")
        await make_event(organizer, title="Called Off", status=EventStatusEnum.cancelled)

        assert await count_events(db_session) == 1
        assert await count_events(db_session, viewer_id=organizer.id) == 2
        assert await count_events(db_session, viewer_id=other_organizer.id) == 1
        assert await count_events(db_session, include_all=True) == 2

    async def test_filters(self, db_session, organizer, category, make_event):
        await make_event(organizer, title="Python Workshop", category_id=category.id)
        await make_event(organizer, title="Jazz Night", description="Live music")
        await make_event(organizer, title="Old Python Talk", days_from_now=-10)

        titles = {e["title"] for e in await list_events(db_session, search="python")}
        assert titles == {"Python Workshop", "Old Python Talk"}

        upcoming = await list_events(db_session, search="python", starts_from=today())
        assert [e["title"] for e in upcoming] == ["Python Workshop"]

        in_category = await list_events(db_session, category_id=category.id)
        assert [e["title"] for e in in_category] == ["Python Workshop"]

        assert len(await list_events(db_session, search="MUSIC")) == 1

    async def test_pagination(self, db_session, organizer, make_event):
        for i in range(5):
            await make_event(organizer, title=f"Event {i}", days_from_now=i + 1)

        first = await list_events(db_session, limit=2, offset=0)
        rest = await list_events(db_session, limit=10, offset=2)
        assert [e["title"] for e in first] == ["Event 4", "Event 3"]
        assert len(rest) == 3

    async def test_capacity_cannot_drop_below_registrations(self, db_session, attendee, other_attendee, event, make_registration):
        await make_registration(event, attendee)
        await make_registration(event, other_attendee)

        assert await update_event(db_session, event.id, {"max_attendees": 1}) is False
        assert await update_event(db_session, event.id, {"max_attendees": 2}) is True
        assert (await get_event_detail(db_session, event.id))["available_spots"] == 0

    async def test_delete_event_cascades(self, db_session, attendee, past_event, make_registration):
        await make_registration(past_event, attendee)
        await create_feedback(db_session, past_event.id, attendee.id, 5, "Loved it")
        event_id = past_event.id

        assert await delete_event(db_session, event_id) is True
        assert await get_event_detail(db_session, event_id) is None
        assert await get_registration_for_pair(db_session, event_id, attendee.id) is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestRegistrationCounter:

    async def test_counter_tracks_inserts(self, db_session, attendee, small_event):
        registration = await create_registration(db_session, small_event.id, attendee.id)
        assert registration.event_id == small_event.id
        assert await count_registrations_for_event(db_session, small_event.id) == 1

    async def test_full_event_writes_nothing(self, db_session, attendee, other_attendee, third_attendee, small_event):
        await create_registration(db_session, small_event.id, attendee.id)
        await create_registration(db_session, small_event.id, other_attendee.id)

        result = await create_registration(db_session, small_event.id, third_attendee.id)
        assert result.kind == ErrorKind.event_full
        assert await get_registration_for_pair(db_session, small_event.id, third_attendee.id) is None

    async def test_duplicate_rolls_back_the_seat(self, db_session, attendee, event):
        # Bypasses the service pre-check, as two concurrent requests would
        event_id, user_id = event.id, attendee.id
        await create_registration(db_session, event_id, user_id)

        result = await create_registration(db_session, event_id, user_id)
        assert result.kind == ErrorKind.duplicate_registration
        assert await count_registrations_for_event(db_session, event_id) == 1


@pytest.mark.unit
@pytest.mark.asyncio
class TestCategoryRepository:

    async def test_list_is_cached_until_a_write(self, db_session, fake_redis):
        await create_category(db_session, "Music", None)
        assert [c["name"] for c in await list_categories(db_session)] == ["Music"]
        assert any(key.startswith("categories:list:") for key in fake_redis.store)

        await create_category(db_session, "Art", "Galleries")
        assert [c["name"] for c in await list_categories(db_session)] == ["Art", "Music"]

    async def test_referenced_category_is_kept(self, db_session, organizer, category, make_event):
        await make_event(organizer, category_id=category.id)
        category_id = category.id

        assert await delete_category(db_session, category) is False

        assert [c["id"] for c in await list_categories(db_session)] == [category_id]


@pytest.mark.unit
@pytest.mark.asyncio
class TestReports:

    async def test_stats(self, db_session, admin, attendee, organizer, event, past_event, make_registration):
        await make_registration(event, attendee)
        stats = await get_stats(db_session, today())
        assert stats == {
            "total_users": 3,
            "total_events": 2,
            "total_registrations": 1,
            "upcoming_events": 1,
        }

    async def test_recent_activities_newest_first(self, db_session, attendee, event, make_registration):
        await make_registration(event, attendee)
        feed = await list_recent_activities(db_session, 10)

        assert [a["type"] for a in feed] == ["registration", "event"]
        assert feed[0]["user_name"] == attendee.name
        assert feed[1]["event_title"] == event.title
        assert len(await list_recent_activities(db_session, 1)) == 1
