"""
Tests for the structlog processors shared by every log entry.
"""

from ticket_manager.core.config import get_settings
from ticket_manager.core.logging import _add_app_context


def test_entries_carry_app_context():
    settings = get_settings()
    event = _add_app_context(None, "info", {"event": "tickets_allocated", "assigned": 2})

    assert event["app_version"] == settings.APP_VERSION
    assert event["env"] == "test"
    assert event["assigned"] == 2


def test_bound_context_is_not_overwritten():
    event = _add_app_context(None, "info", {"event": "x", "env": "staging"})
    assert event["env"] == "staging"
