"""Tests for github/releases.py."""

from __future__ import annotations

from tagcut.core.result import Err, Ok
from tagcut.git.repository import RepoSlug
from tagcut.github.http import HttpError, HttpResponse, MockHttpClient
from tagcut.github.releases import PlatformReleases, get_token

BASE = "https://api.github.com/repos/acme/widget/releases"
SLUG = RepoSlug("acme", "widget")
ENV = {"GITHUB_TOKEN": "t0ken"}


class TestGetToken:
    def test_present(self) -> None:
        assert get_token({"GITHUB_TOKEN": " abc \n"}) == Ok("abc")

    def test_missing_or_blank(self) -> None:
        assert isinstance(get_token({}), Err)
        assert isinstance(get_token({"GITHUB_TOKEN": "  "}), Err)


class TestDeleteRelease:
    def test_deletes_release_by_id(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", f"{BASE}/tags/v1.2.3", 200, {"id": 4242, "tag_name": "v1.2.3"})
        http.set_response("DELETE", f"{BASE}/4242", HttpResponse(204))

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert result == Ok(True)
        assert http.calls == [("GET", f"{BASE}/tags/v1.2.3"), ("DELETE", f"{BASE}/4242")]

    def test_missing_release_is_not_an_error(self) -> None:
        http = MockHttpClient()

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert result == Ok(False)
        assert http.calls == [("GET", f"{BASE}/tags/v1.2.3")]

    def test_lookup_server_error(self) -> None:
        http = MockHttpClient()
        http.set_response("GET", f"{BASE}/tags/v1.2.3", HttpResponse(500, b"oops"))

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert isinstance(result, Err)
        assert result.error.status == 500
        assert "status=500" in result.error.message

    def test_missing_id(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", f"{BASE}/tags/v1.2.3", 200, {"tag_name": "v1.2.3"})

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert isinstance(result, Err)
        assert "release id missing" in result.error.message

    def test_delete_rejected(self) -> None:
        http = MockHttpClient()
        http.set_json("GET", f"{BASE}/tags/v1.2.3", 200, {"id": 7})
        http.set_response("DELETE", f"{BASE}/7", HttpResponse(403, b"forbidden"))

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert isinstance(result, Err)
        assert "failed deleting release" in result.error.message

    def test_network_failure(self) -> None:
        http = MockHttpClient()
        http.set_response("GET", f"{BASE}/tags/v1.2.3", HttpError(url=BASE, message="connection reset"))

        result = PlatformReleases(http, env=ENV).delete_release(SLUG, "v1.2.3")

        assert isinstance(result, Err)
        assert result.error.kind == "network_error"

    def test_token_required_before_any_request(self) -> None:
        http = MockHttpClient()

        result = PlatformReleases(http, env={}).delete_release(SLUG, "v1.2.3")

        assert isinstance(result, Err)
        assert result.error.kind == "token_missing"
        assert http.calls == []

    def test_custom_api_root(self) -> None:
        http = MockHttpClient()
        PlatformReleases(http, env=ENV, api_root="https://ghe.example.com/api/v3/").delete_release(SLUG, "v1.0.0")

        assert http.calls[0][1] == "https://ghe.example.com/api/v3/repos/acme/widget/releases/tags/v1.0.0"
