"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "agri_wholesale"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    @pytest.mark.parametrize(
        "entry,task",
        [
            ("relay-outbox-events", "core.relay_outbox_events"),
            ("purge-expired-notifications", "notifications.purge_expired"),
        ],
    )
    def test_periodic_tasks_are_scheduled(self, settings, entry, task):
        assert settings.CELERY_BEAT_SCHEDULE[entry]["task"] == task

    def test_tasks_are_registered(self):
        from config import celery_app
        from modules.core import tasks as core_tasks  # noqa: F401
        from modules.notifications import tasks as notification_tasks  # noqa: F401

        assert "core.relay_outbox_events" in celery_app.tasks
        assert "notifications.purge_expired" in celery_app.tasks
