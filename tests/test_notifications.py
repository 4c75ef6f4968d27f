"""Notification tests: listing order, unread counts, recipient-only read marking."""

from __future__ import annotations

from leaveflow.notifications.service import NotificationService


async def _notify(cache, recipient_id: str, title: str):
    return await NotificationService.create_notification(
        cache, recipient_id=recipient_id, title=title, message=f"{title} body"
    )


class TestNotificationService:
    """Tests for NotificationService."""

    async def test_newest_first(self, cache):
        await _notify(cache, "003", "First")
        await _notify(cache, "003", "Second")

        items = await NotificationService.get_notifications(cache, "003", refresh=True)
        assert [n.title for n in items] == ["Second", "First"]

    async def test_unread_count_and_filter(self, cache):
        first = await _notify(cache, "003", "First")
        await _notify(cache, "003", "Second")
        assert await NotificationService.unread_count(cache, "003") == 2

        assert await NotificationService.mark_read(cache, first.id, "003")

        assert await NotificationService.unread_count(cache, "003") == 1
        unread = await NotificationService.get_notifications(cache, "003", unread_only=True)
        assert [n.title for n in unread] == ["Second"]

    async def test_only_recipient_can_mark_read(self, cache):
        item = await _notify(cache, "003", "Private")

        assert await NotificationService.mark_read(cache, item.id, "002") is False
        items = await NotificationService.get_notifications(cache, "003", refresh=True)
        assert not items[0].is_read

    async def test_unknown_notification(self, cache):
        assert await NotificationService.mark_read(cache, "missing", "003") is False

    async def test_recipient_id_canonicalized(self, cache):
        await _notify(cache, "3", "Padded")
        items = await NotificationService.get_notifications(cache, 3)
        assert [n.employee_id for n in items] == ["003"]

    async def test_loaded_inbox_refreshed_on_create(self, cache):
        await NotificationService.get_notifications(cache, "003")
        await _notify(cache, "003", "Fresh")
        assert [n.title for n in cache.get_notifications("003")] == ["Fresh"]
