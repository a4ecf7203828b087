"""
Tests for the GitHub repository lister.

HTTP is served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

from typing import Dict, List

import httpx
import pytest

from gh_mirror.mirror.lister import ListingError, list_repositories

API = "https://api.github.com"


def _repo(name: str, fork: bool = False, private: bool = False, description=None) -> Dict:
    return {
        "name": name,
        "full_name": f"octo/{name}",
        "fork": fork,
        "private": private,
        "description": description,
        "clone_url": f"https://github.com/octo/{name}.git",
        "ssh_url": f"git@github.com:octo/{name}.git",
        "git_url": f"git://github.com/octo/{name}.git",
    }


def _paged_client(pages: List[List[Dict]], requests: List[httpx.Request]) -> httpx.Client:
    """Client serving ``pages`` with Link headers between them."""

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        page = int(request.url.params.get("page", "1"))
        headers = {}
        if page < len(pages):
            next_url = f"{API}/user/1/repos?type=owner&per_page=100&page={page + 1}"
            last_url = f"{API}/user/1/repos?type=owner&per_page=100&page={len(pages)}"
            headers["Link"] = f'<{next_url}>; rel="next", <{last_url}>; rel="last"'
        return httpx.Response(200, json=pages[page - 1], headers=headers)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestListRepositories:
    """Tests for list_repositories()."""

    def test_filters_forks_and_private(self):
        requests: List[httpx.Request] = []
        client = _paged_client(
            [[
                _repo("a", description="First"),
                _repo("b"),
                _repo("c", private=True),
                _repo("d", fork=True),
            ]],
            requests,
        )

        repos = list_repositories("octo", client=client)

        assert [r.name for r in repos] == ["a", "b"]
        assert repos[0].description == "First"
        assert repos[1].description is None
        assert repos[0].clone_url == "https://github.com/octo/a.git"

    def test_first_request(self):
        requests: List[httpx.Request] = []
        list_repositories("octo", client=_paged_client([[]], requests))

        assert len(requests) == 1
        url = requests[0].url
        assert url.path == "/users/octo/repos"
        assert url.params["type"] == "owner"
        assert url.params["per_page"] == "100"
        assert requests[0].headers["Accept"] == "application/vnd.github+json"
        assert "Authorization" not in requests[0].headers

    def test_follows_pagination(self):
        requests: List[httpx.Request] = []
        client = _paged_client(
            [[_repo("a"), _repo("b")], [_repo("c", fork=True), _repo("d")], [_repo("e")]],
            requests,
        )

        repos = list_repositories("octo", client=client)

        assert [r.name for r in repos] == ["a", "b", "d", "e"]
        assert len(requests) == 3
        assert requests[2].url.params["page"] == "3"

    def test_sends_token(self):
        requests: List[httpx.Request] = []
        list_repositories("octo", token="ghp_secret", client=_paged_client([[]], requests))

        assert requests[0].headers["Authorization"] == "Bearer ghp_secret"

    def test_custom_api_url(self):
        requests: List[httpx.Request] = []
        list_repositories(
            "octo",
            api_url="https://ghe.example.com/api/v3/",
            client=_paged_client([[]], requests),
        )

        assert str(requests[0].url).startswith("https://ghe.example.com/api/v3/users/octo/repos")

    @pytest.mark.parametrize(
        "protocol,expected",
        [
            ("https", "https://github.com/octo/a.git"),
            ("ssh", "git@github.com:octo/a.git"),
            ("git", "git://github.com/octo/a.git"),
        ],
    )
    def test_protocol_selects_url(self, protocol, expected):
        repos = list_repositories("octo", protocol=protocol, client=_paged_client([[_repo("a")]], []))
        assert repos[0].clone_url == expected

    def test_unknown_protocol(self):
        with pytest.raises(ListingError):
            list_repositories("octo", protocol="ftp", client=_paged_client([[]], []))


class TestListingErrors:
    """Any failing page aborts the listing."""

    def test_error_status(self):
        def handler(request):
            return httpx.Response(404, json={"message": "Not Found"})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError) as exc_info:
            list_repositories("ghost", client=client)

        assert "404" in str(exc_info.value)
        assert "Not Found" in str(exc_info.value)

    def test_failure_on_later_page_returns_nothing(self):
        def handler(request):
            if request.url.params.get("page") == "2":
                return httpx.Response(502, text="Bad Gateway")
            return httpx.Response(
                200,
                json=[_repo("a")],
                headers={"Link": f'<{API}/user/1/repos?page=2>; rel="next"'},
            )

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError) as exc_info:
            list_repositories("octo", client=client)

        assert "502" in str(exc_info.value)

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError) as exc_info:
            list_repositories("octo", client=client)

        assert "connection refused" in str(exc_info.value)

    def test_non_list_payload(self):
        def handler(request):
            return httpx.Response(200, json={"message": "unexpected"})

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError):
            list_repositories("octo", client=client)

    def test_entry_without_clone_url(self):
        def handler(request):
            return httpx.Response(200, json=[{"name": "a", "fork": False, "private": False}])

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError):
            list_repositories("octo", client=client)

    def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>")

        client = httpx.Client(transport=httpx.MockTransport(handler))
        with pytest.raises(ListingError):
            list_repositories("octo", client=client)
