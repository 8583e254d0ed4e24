"""Domain Types — enums and the caller identity value object."""

import dataclasses

import pytest

from parley.core.domain_types import CallerIdentity, ConversationType


def test_conversation_type_values_match_stored_column():
    assert ConversationType.DM.value == "dm"
    assert ConversationType.GROUP.value == "group"
    assert ConversationType("group") is ConversationType.GROUP


def test_caller_identity_requires_only_subject():
    identity = CallerIdentity(subject="auth|alice")
    assert identity.name is None
    assert identity.picture_url is None


def test_caller_identity_is_immutable():
    identity = CallerIdentity(subject="auth|alice")
    with pytest.raises(dataclasses.FrozenInstanceError):
        identity.subject = "auth|mallory"
