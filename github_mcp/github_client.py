"""GitHub API wrapper and auth helpers."""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, NoReturn
from urllib.parse import quote

import httpx
from dotenv import load_dotenv

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON_ACCEPT_HEADER = "application/vnd.github+json"
DEFAULT_TIMEOUT_SECONDS = 20


class GitHubAuthError(RuntimeError):
    """Raised when required GitHub authentication is missing."""


class GitHubInputError(ValueError):
    """Raised when repository, path, or content input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        endpoint: str,
        github_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint
        self.github_message = github_message


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """Identity behind the configured token."""

    login: str
    name: str | None
    plan_name: str | None


@dataclass(frozen=True, slots=True)
class CreatedRepository:
    """Fields of a freshly created repository."""

    full_name: str
    html_url: str
    default_branch: str


@dataclass(frozen=True, slots=True)
class ExistingContent:
    """Outcome of probing a repository path at a ref."""

    exists: bool
    sha: str | None = None


@dataclass(frozen=True, slots=True)
class FileCommit:
    """Result of a contents create-or-update call."""

    commit_sha: str
    download_url: str | None
    html_url: str | None


@dataclass(frozen=True, slots=True)
class BranchRef:
    """A branch reference and the commit it points at."""

    ref: str
    sha: str


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise GitHubApiError(
            f"Expected string field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _optional_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str | None:
    """Read a string-or-null field from payload."""
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise GitHubApiError(
            f"Expected '{key}' to be a string or null in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_object(payload: dict[str, Any], *, key: str, endpoint: str) -> dict[str, Any]:
    """Read a required object field from payload."""
    value = payload.get(key)
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected object field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _error_message_from_response(response: httpx.Response) -> str | None:
    """Extract GitHub's error message from a failed response body, if any."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if not isinstance(message, str):
        return None
    errors = payload.get("errors")
    if isinstance(errors, list):
        details = [
            item["message"]
            for item in errors
            if isinstance(item, dict) and isinstance(item.get("message"), str)
        ]
        if details:
            message = f"{message} ({'; '.join(details)})"
    return message


def _raise_http_error(response: httpx.Response, endpoint: str) -> NoReturn:
    """Raise a typed error for a non-success GitHub API response."""
    github_message = _error_message_from_response(response)
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'"
    message = f"{message}: {github_message}" if github_message else f"{message}."
    raise GitHubApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
        github_message=github_message,
    )


def _send_request(
    client: httpx.Client,
    method: str,
    endpoint: str,
    *,
    json_body: dict[str, Any] | None = None,
    allow_not_found: bool = False,
) -> httpx.Response:
    """Perform a single GitHub API request, raising on failure statuses."""
    response = client.request(
        method,
        endpoint,
        json=json_body,
        headers={"Accept": GITHUB_JSON_ACCEPT_HEADER},
    )
    if response.status_code < 400:
        return response
    if allow_not_found and response.status_code == 404:
        return response
    _raise_http_error(response, endpoint)


def _request_json(
    client: httpx.Client,
    method: str,
    endpoint: str,
    *,
    json_body: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Perform a JSON request against GitHub API."""
    response = _send_request(client, method, endpoint, json_body=json_body)
    return _ensure_mapping(response.json(), context=endpoint)


def _contents_endpoint(owner: str, repo: str, path: str) -> str:
    """Build the repository contents endpoint for a path."""
    normalized_path = path.lstrip("/")
    if not normalized_path:
        raise GitHubInputError("Invalid file path ''. Expected a non-empty repository path.")
    return (
        f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
        f"/contents/{quote(normalized_path, safe='/')}"
    )


def decode_content(content: str, encoding: str) -> bytes:
    """Decode tool-supplied content into raw bytes."""
    if encoding == "utf-8":
        return content.encode("utf-8")
    if encoding == "base64":
        compact = "".join(content.split())
        try:
            return base64.b64decode(compact, validate=True)
        except (binascii.Error, ValueError) as error:
            raise GitHubInputError("Content is not valid base64.") from error
    raise GitHubInputError(f"Unsupported content encoding '{encoding}'.")


def fetch_authenticated_user(*, client: httpx.Client) -> AuthenticatedUser:
    """Fetch the user that owns the configured token."""
    endpoint = "/user"
    payload = _request_json(client, "GET", endpoint)
    plan = payload.get("plan")
    plan_name = None
    if isinstance(plan, dict):
        plan_name = _optional_str(plan, key="name", endpoint=endpoint)
    return AuthenticatedUser(
        login=_require_str(payload, key="login", endpoint=endpoint),
        name=_optional_str(payload, key="name", endpoint=endpoint),
        plan_name=plan_name,
    )


def fetch_authenticated_user_login(*, client: httpx.Client) -> str:
    """Fetch authenticated GitHub user login for token validation."""
    return fetch_authenticated_user(client=client).login


def create_repository(
    *,
    client: httpx.Client,
    name: str,
    description: str | None = None,
    private: bool = True,
    org: str | None = None,
) -> CreatedRepository:
    """Create a repository in an organization, or for the authenticated user."""
    endpoint = f"/orgs/{quote(org, safe='')}/repos" if org else "/user/repos"
    body: dict[str, Any] = {"name": name, "private": private}
    if description is not None:
        body["description"] = description

    payload = _request_json(client, "POST", endpoint, json_body=body)
    return CreatedRepository(
        full_name=_require_str(payload, key="full_name", endpoint=endpoint),
        html_url=_require_str(payload, key="html_url", endpoint=endpoint),
        default_branch=_require_str(payload, key="default_branch", endpoint=endpoint),
    )


def probe_existing_file(
    *,
    client: httpx.Client,
    owner: str,
    repo: str,
    path: str,
    ref: str,
) -> ExistingContent:
    """Look up a path at a ref to decide between create and update.

    A 404 means the file does not exist yet. Any entry that is not a regular
    file (directory listing, symlink, submodule) is rejected so that it is
    never overwritten blindly.
    """
    endpoint = f"{_contents_endpoint(owner, repo, path)}?ref={quote(ref, safe='')}"
    response = _send_request(client, "GET", endpoint, allow_not_found=True)
    if response.status_code == 404:
        return ExistingContent(exists=False)

    payload = response.json()
    if isinstance(payload, list):
        raise GitHubInputError(f"Path '{path}' at ref '{ref}' is a directory, not a file.")
    payload = _ensure_mapping(payload, context=endpoint)

    content_type = _optional_str(payload, key="type", endpoint=endpoint)
    if content_type != "file":
        raise GitHubInputError(
            f"Path '{path}' at ref '{ref}' is a '{content_type}' entry, not a regular file."
        )
    sha = _optional_str(payload, key="sha", endpoint=endpoint)
    if not sha:
        raise GitHubInputError(
            f"Existing file '{path}' at ref '{ref}' has no blob SHA; refusing to overwrite."
        )
    return ExistingContent(exists=True, sha=sha)


def put_file_contents(
    *,
    client: httpx.Client,
    owner: str,
    repo: str,
    path: str,
    message: str,
    content: bytes,
    branch: str,
    sha: str | None = None,
) -> FileCommit:
    """Create or update one file on a branch with a single commit."""
    endpoint = _contents_endpoint(owner, repo, path)
    body: dict[str, Any] = {
        "message": message,
        "content": base64.b64encode(content).decode("ascii"),
        "branch": branch,
    }
    if sha is not None:
        body["sha"] = sha

    payload = _request_json(client, "PUT", endpoint, json_body=body)
    commit_payload = _require_object(payload, key="commit", endpoint=endpoint)
    content_payload = payload.get("content")
    download_url = None
    html_url = None
    if isinstance(content_payload, dict):
        download_url = _optional_str(content_payload, key="download_url", endpoint=endpoint)
        html_url = _optional_str(content_payload, key="html_url", endpoint=endpoint)

    return FileCommit(
        commit_sha=_require_str(commit_payload, key="sha", endpoint=endpoint),
        download_url=download_url,
        html_url=html_url,
    )


def _read_ref_payload(payload: dict[str, Any], *, endpoint: str) -> BranchRef:
    """Normalize a git reference payload."""
    object_payload = _require_object(payload, key="object", endpoint=endpoint)
    return BranchRef(
        ref=_require_str(payload, key="ref", endpoint=endpoint),
        sha=_require_str(object_payload, key="sha", endpoint=endpoint),
    )


def fetch_branch_ref(
    *,
    client: httpx.Client,
    owner: str,
    repo: str,
    branch: str,
) -> BranchRef:
    """Fetch the reference of an existing branch."""
    endpoint = (
        f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
        f"/git/ref/heads/{quote(branch, safe='/')}"
    )
    payload = _request_json(client, "GET", endpoint)
    return _read_ref_payload(payload, endpoint=endpoint)


def create_branch_ref(
    *,
    client: httpx.Client,
    owner: str,
    repo: str,
    branch: str,
    sha: str,
) -> BranchRef:
    """Create a new branch reference pointing at a commit."""
    endpoint = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/git/refs"
    payload = _request_json(
        client,
        "POST",
        endpoint,
        json_body={"ref": f"refs/heads/{branch}", "sha": sha},
    )
    return _read_ref_payload(payload, endpoint=endpoint)


def get_github_token() -> str:
    """Read GitHub token from environment and fail fast if missing."""
    token, _source = get_github_token_with_source()
    return token


def get_github_token_with_source() -> tuple[str, str]:
    """Read GitHub token and return token value with environment source key."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    github_token = os.getenv("GITHUB_TOKEN")
    if github_token:
        return github_token, "GITHUB_TOKEN"

    gh_token = os.getenv("GH_TOKEN")
    if gh_token:
        return gh_token, "GH_TOKEN"

    message = (
        "Missing GitHub token. Set GITHUB_TOKEN (preferred) or GH_TOKEN "
        "to a personal access token with repo scope."
    )
    raise GitHubAuthError(message)


def build_github_client(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    *,
    token: str | None = None,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an authenticated GitHub HTTP client."""
    if token is None:
        token = get_github_token()
    headers = {
        "Accept": GITHUB_JSON_ACCEPT_HEADER,
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.Client(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
    )
