"""
GitHub Lister — Fetch the repositories an account owns.

Uses the GitHub REST API, following Link pagination until the last page.
Forks and private repositories are dropped. A failed page aborts the whole
listing; callers never see a partial set.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

from ..config import DEFAULT_API_URL
from ..models import RepositoryDescriptor
from ..validation import GhMirrorError

logger = logging.getLogger(__name__)

PER_PAGE = 100

URL_FIELDS = {
    "https": "clone_url",
    "ssh": "ssh_url",
    "git": "git_url",
}


class ListingError(GhMirrorError):
    """The repository list could not be fetched."""


def _get_headers(token: Optional[str]) -> Dict[str, str]:
    """Get GitHub API headers."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def list_repositories(
    user: str,
    token: Optional[str] = None,
    api_url: str = DEFAULT_API_URL,
    protocol: str = "https",
    client: Optional[httpx.Client] = None,
) -> List[RepositoryDescriptor]:
    """
    List public, non-fork repositories owned by a user.

    Args:
        user: Account name
        token: Optional API token; anonymous requests are rate limited
        api_url: API base URL (GitHub Enterprise: https://host/api/v3)
        protocol: Which clone URL to use: https, ssh or git
        client: Pre-configured client (tests inject a MockTransport)

    Raises:
        ListingError: If any page fails or returns malformed data
    """
    url_field = URL_FIELDS.get(protocol)
    if url_field is None:
        raise ListingError(f"unknown protocol {protocol!r}")

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=15)

    try:
        return _fetch_all(client, user, token, api_url, url_field)
    finally:
        if owns_client:
            client.close()


def _fetch_all(
    client: httpx.Client,
    user: str,
    token: Optional[str],
    api_url: str,
    url_field: str,
) -> List[RepositoryDescriptor]:
    url: Optional[str] = f"{api_url.rstrip('/')}/users/{user}/repos"
    params: Optional[Dict[str, str]] = {"type": "owner", "per_page": str(PER_PAGE)}
    headers = _get_headers(token)

    repos: List[RepositoryDescriptor] = []
    page = 0
    while url:
        page += 1
        try:
            resp = client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise ListingError(f"request for page {page} failed: {e}") from e

        if resp.status_code != 200:
            raise ListingError(
                f"GET {resp.request.url} returned {resp.status_code}: {_error_message(resp)}"
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise ListingError(f"page {page} is not valid JSON: {e}") from e
        if not isinstance(payload, list):
            raise ListingError(f"page {page}: expected a list, got {type(payload).__name__}")

        for item in payload:
            if not isinstance(item, dict):
                raise ListingError(f"page {page}: malformed repository entry: {item!r}")
            if item.get("fork") or item.get("private"):
                continue
            try:
                repos.append(RepositoryDescriptor.from_payload(item, url_field))
            except (KeyError, ValueError) as e:
                raise ListingError(f"page {page}: malformed repository entry: {e}") from e

        logger.debug(f"[mirror-list] Page {page}: {len(payload)} entries")

        # The next link already carries the query string
        url = resp.links.get("next", {}).get("url")
        params = None

    logger.info(f"[mirror-list] {user}: {len(repos)} public non-fork repositories")
    return repos


def _error_message(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text.strip()[:200]
    if isinstance(data, dict) and data.get("message"):
        return data["message"]
    return resp.text.strip()[:200]
