"""
Repository layer for database operations.

Async query functions for users, categories, events, registrations,
feedback and dashboard reporting. Each function takes the session as its
first argument and commits its own writes.
"""
from app.db.repositories.users import (
    create_user,
    get_user,
    get_user_by_email,
    list_users,
    update_user,
    set_user_blocked,
    set_user_role,
    set_reset_token,
    get_user_by_reset_token,
    consume_reset_token,
    count_events_organized_by,
    delete_user,
)
from app.db.repositories.categories import (
    list_categories,
    get_category,
    get_category_by_name,
    create_category,
    update_category,
    count_events_in_category,
    delete_category,
)
from app.db.repositories.events import (
    list_events,
    count_events,
    get_event,
    get_event_detail,
    create_event,
    update_event,
    delete_event,
)
from app.db.repositories.registrations import (
    get_registration,
    get_registration_for_pair,
    count_registrations_for_event,
    create_registration,
    delete_registration,
    list_registrations_for_event,
    list_registrations_for_user,
)
from app.db.repositories.feedback import (
    get_feedback_for_pair,
    create_feedback,
    list_feedback_for_event,
    list_feedback_for_organizer,
)
from app.db.repositories.reports import get_stats, list_recent_activities
