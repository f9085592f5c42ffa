"""Tests for profile publishing and the demo matcher."""

import asyncio
import random

import pytest

from matchmaker.domain.sessions import ProfileSnapshot
from matchmaker.services.matches import DEMO_PROFILES, RandomSampleMatcher
from matchmaker.services.profiles import (
    PROFILE_CODE_LENGTH,
    ProfilePublisher,
    PublishError,
    profile_key,
)
from matchmaker.services.session_store import InMemoryKeyValueStore


def test_publish_issues_permanent_url(kv_store) -> None:
    publisher = ProfilePublisher(store=kv_store, public_base_url="https://mm.example/")
    snapshot = ProfileSnapshot(id="profile_ABC234_1", fields={"name": "Alex"})

    url = asyncio.run(publisher.publish("ABC234", snapshot))

    code = url.rsplit("/", 1)[-1]
    assert url == f"https://mm.example/profile/{code}"
    assert len(code) == PROFILE_CODE_LENGTH
    stored = publisher.get_by_code(code.lower())
    assert stored is not None
    assert stored.profile_url == url
    assert kv_store.get(profile_key("ABC234")) is not None
    assert publisher.get_by_code("MISSING1") is None


def test_publish_wraps_storage_failures() -> None:
    publisher = ProfilePublisher(store=_AlwaysFailingStore(), public_base_url="https://mm")

    with pytest.raises(PublishError):
        asyncio.run(publisher.publish("ABC234", ProfileSnapshot(id="p", fields={})))


class _AlwaysFailingStore(InMemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise OSError("disk full")


def test_matcher_filters_by_preference_and_never_pads() -> None:
    matcher = RandomSampleMatcher(rng=random.Random(7))

    women = asyncio.run(matcher.find_candidates({"interested_in": "Female"}, limit=50))

    expected = [entry for entry in DEMO_PROFILES if entry.gender == "Female"]
    assert len(women) == len(expected)
    assert {candidate.id for candidate in women} == {entry.id for entry in expected}
    assert all(candidate.profile_url is None for candidate in women)


def test_matcher_samples_everyone_without_preference() -> None:
    matcher = RandomSampleMatcher(rng=random.Random(1))

    picks = asyncio.run(matcher.find_candidates({"interested_in": "Everyone"}, limit=3))

    assert len(picks) == 3
    assert len({candidate.id for candidate in picks}) == 3
    assert all(candidate.profile_url is None for candidate in picks)
