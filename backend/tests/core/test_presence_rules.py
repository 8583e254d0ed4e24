"""Presence Rules — typing expiry arithmetic and online detection.

Tests cover:
    - Typing sets expiry to now + TTL; stopping sets it to now
    - Visibility is strict (expires_at == now is stale) and excludes the viewer
    - is_online uses an inclusive threshold
"""

from uuid import uuid4

from parley.core.presence_rules import (
    DEFAULT_ONLINE_THRESHOLD_MS, DEFAULT_TYPING_TTL_MS,
    is_online, is_typing_visible, typing_expiry,
)


def test_default_ttl_is_two_seconds():
    assert DEFAULT_TYPING_TTL_MS == 2_000


def test_typing_expires_after_ttl():
    assert typing_expiry(10_000, True) == 12_000


def test_custom_ttl_is_honoured():
    assert typing_expiry(10_000, True, ttl_ms=500) == 10_500


def test_stopping_expires_immediately():
    assert typing_expiry(10_000, False) == 10_000


def test_event_is_visible_before_expiry():
    assert is_typing_visible(12_000, uuid4(), uuid4(), 11_999)


def test_event_at_expiry_instant_is_stale():
    assert not is_typing_visible(12_000, uuid4(), uuid4(), 12_000)


def test_viewer_never_sees_own_event():
    me = uuid4()
    assert not is_typing_visible(99_999, me, me, 0)


def test_online_within_threshold():
    assert is_online(0, DEFAULT_ONLINE_THRESHOLD_MS)


def test_offline_past_threshold():
    assert not is_online(0, DEFAULT_ONLINE_THRESHOLD_MS + 1)


def test_never_seen_is_offline():
    assert not is_online(None, 0)
