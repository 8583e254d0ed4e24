"""Feed Rules — last-message previews and feed ordering."""

from types import SimpleNamespace

from parley.core.feed_rules import (
    DELETED_MESSAGE_PREVIEW, EMPTY_CONVERSATION_PREVIEW,
    last_activity_at, last_message_preview, sort_feed,
)


def test_preview_without_messages():
    assert last_message_preview(None, None, has_message=False) == EMPTY_CONVERSATION_PREVIEW


def test_preview_of_tombstone_hides_body():
    assert last_message_preview("", 500, has_message=True) == DELETED_MESSAGE_PREVIEW


def test_preview_shows_body():
    assert last_message_preview("hi", None, has_message=True) == "hi"


def test_activity_prefers_latest_message():
    assert last_activity_at(300, 900) == 300


def test_activity_falls_back_to_conversation_update():
    assert last_activity_at(None, 900) == 900


def test_feed_is_sorted_newest_first():
    rows = [SimpleNamespace(last_message_at=t, name=n) for t, n in [(1, "a"), (3, "c"), (2, "b")]]
    assert [r.name for r in sort_feed(rows)] == ["c", "b", "a"]
