"""Integration tests for the GitHub client against the live GitHub API."""

from __future__ import annotations

import os

import pytest
from github_mcp.github_client import build_github_client, fetch_authenticated_user
from github_mcp.tools import ToolRegistry


def _has_github_token() -> bool:
    """Return whether a GitHub token is configured."""
    return bool(os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN"))


@pytest.mark.integration
def test_live_fetch_authenticated_user() -> None:
    if not _has_github_token():
        pytest.skip("Set GITHUB_TOKEN or GH_TOKEN for integration tests.")

    with build_github_client(timeout_seconds=20) as client:
        user = fetch_authenticated_user(client=client)

    assert user.login


@pytest.mark.integration
def test_live_whoami_tool() -> None:
    if not _has_github_token():
        pytest.skip("Set GITHUB_TOKEN or GH_TOKEN for integration tests.")

    with build_github_client(timeout_seconds=20) as client:
        result = ToolRegistry(client).invoke("whoami", {})

    assert result["login"]
    assert result["plan"]
