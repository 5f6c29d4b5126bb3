"""Tests for wire payload mapping."""

from __future__ import annotations

import pytest

from bbrepolist.exceptions import InvalidResponseError
from bbrepolist.payloads import RepoPagePayload, RepositoryPayload, UserPayload


class TestRepositoryPayload:
    def test_updated_on_maps_to_last_updated(self) -> None:
        payload = RepositoryPayload.model_validate({
            "name": "api",
            "updated_on": "2024-05-20T08:30:00+00:00",
            "full_name": "acme/api",
        })
        repository = payload.to_domain()
        assert repository.last_updated_on is not None
        assert repository.last_updated_on.year == 2024
        assert repository.created_on is None


class TestRepoPagePayload:
    def test_missing_values(self) -> None:
        page = RepoPagePayload.model_validate({"next": None}).to_domain()
        assert page.values == []
        assert page.next is None

    def test_keeps_next_cursor(self) -> None:
        page = RepoPagePayload.model_validate({
            "values": [{"name": "api"}],
            "next": "https://api.bitbucket.org/2.0/repositories/acme?page=2",
            "pagelen": 10,
        }).to_domain()
        assert [r.name for r in page.values] == ["api"]
        assert page.next == "https://api.bitbucket.org/2.0/repositories/acme?page=2"

    def test_null_entry(self) -> None:
        payload = RepoPagePayload.model_validate({"values": [{"name": "api"}, None]})
        with pytest.raises(InvalidResponseError, match="index 1"):
            payload.to_domain()

    def test_blank_name(self) -> None:
        payload = RepoPagePayload.model_validate({"values": [{"name": "  "}]})
        with pytest.raises(InvalidResponseError):
            payload.to_domain()


class TestUserPayload:
    def test_to_domain(self) -> None:
        user = UserPayload(uuid="{1}", display_name=None, nickname="dana").to_domain()
        assert user.uuid == "{1}"
        assert user.display_name == "<N/A>"

    def test_missing_uuid(self) -> None:
        with pytest.raises(InvalidResponseError):
            UserPayload(display_name="Dana").to_domain()
