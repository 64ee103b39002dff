"""Seed Provider 테스트 (패키지 리소스 사용)"""
import pytest

from localevents.providers.seed_provider import load_seed_provider


@pytest.fixture(scope="module")
def provider():
    return load_seed_provider()


def test_region_lookup_by_name_and_id(provider):
    by_name = provider.get_seed("Oklahoma City")
    by_id = provider.get_seed("okc")

    assert by_name == by_id
    assert len(by_name) == 5
    assert all(e.city_name == "Oklahoma City" for e in by_name)


def test_ids_are_stable_and_prefixed(provider):
    ids = [e.id for e in provider.get_seed("Tulsa")]
    assert ids == [f"seed-tulsa-{n}" for n in range(1, 7)]


def test_category_filter(provider):
    sports = provider.get_seed("Tulsa", "Sports")
    assert {e.title for e in sports} == {"Union vs. Jenks Rivalry Game", "FC Tulsa Home Match"}
    assert provider.get_seed("Tulsa", "All") == provider.get_seed("Tulsa")


def test_trending_filter(provider):
    trending = provider.get_seed("Tulsa", "Trending")
    assert trending
    assert all(e.is_trending for e in trending)


def test_global_region_aggregates_all(provider):
    assert len(provider.get_seed("All")) == 21
    assert set(provider.region_ids) == {"tulsa", "okc", "dallas", "houston"}


def test_unknown_region_is_empty(provider):
    assert provider.get_seed("Anchorage") == []


def test_missing_resource_gives_empty_provider():
    empty = load_seed_provider("does_not_exist.yaml")
    assert empty.get_seed("Tulsa") == []
