"""Tool registry and tool contracts."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from github_mcp.github_client import (
    create_branch_ref,
    create_repository,
    fetch_authenticated_user,
    fetch_authenticated_user_login,
    fetch_branch_ref,
    probe_existing_file,
    put_file_contents,
)
from github_mcp.schema import (
    BranchResult,
    CreateBranchInput,
    CreateRepositoryInput,
    FileCommitResult,
    RepositoryResult,
    ToolResult,
    UpsertFileInput,
    WhoamiInput,
    WhoamiResult,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[[httpx.Client, Any], ToolResult]


class UnknownToolError(LookupError):
    """Raised when an invocation names a tool that is not registered."""


class ToolInputError(ValueError):
    """Raised when an invocation payload does not match the tool's input model."""


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """A named operation with a declared input model."""

    name: str
    description: str
    input_model: type[BaseModel]
    handler: ToolHandler

    def input_schema(self) -> dict[str, Any]:
        """Return the JSON Schema advertised for this tool's arguments."""
        return self.input_model.model_json_schema(by_alias=True)


def resolve_owner(client: httpx.Client, owner: str | None) -> str:
    """Use the given owner, or look up the authenticated login."""
    if owner is not None:
        return owner
    return fetch_authenticated_user_login(client=client)


def handle_create_repository(
    client: httpx.Client,
    params: CreateRepositoryInput,
) -> RepositoryResult:
    """Create a repository under an org when given, else under the token's user."""
    repository = create_repository(
        client=client,
        name=params.name,
        description=params.description,
        private=params.private,
        org=params.org,
    )
    return RepositoryResult(
        repo=repository.full_name,
        url=repository.html_url,
        default_branch=repository.default_branch,
    )


def handle_upsert_file(client: httpx.Client, params: UpsertFileInput) -> FileCommitResult:
    """Write a file to a branch, reusing the existing blob SHA when updating."""
    content = params.raw_content()
    owner = resolve_owner(client, params.owner)
    existing = probe_existing_file(
        client=client,
        owner=owner,
        repo=params.repo,
        path=params.path,
        ref=params.branch,
    )
    logger.debug(
        "Writing %s/%s:%s on %s (%s).",
        owner,
        params.repo,
        params.path,
        params.branch,
        "update" if existing.exists else "create",
    )
    commit = put_file_contents(
        client=client,
        owner=owner,
        repo=params.repo,
        path=params.path,
        message=params.message,
        content=content,
        branch=params.branch,
        sha=existing.sha,
    )
    return FileCommitResult(
        commit_sha=commit.commit_sha,
        download_url=commit.download_url,
        html_url=commit.html_url,
    )


def handle_create_branch(client: httpx.Client, params: CreateBranchInput) -> BranchResult:
    """Point a new branch at the commit the source branch currently points at."""
    owner = resolve_owner(client, params.owner)
    base_ref = fetch_branch_ref(
        client=client,
        owner=owner,
        repo=params.repo,
        branch=params.from_branch,
    )
    new_ref = create_branch_ref(
        client=client,
        owner=owner,
        repo=params.repo,
        branch=params.to,
        sha=base_ref.sha,
    )
    return BranchResult(branch=params.to, sha=new_ref.sha)


def handle_whoami(client: httpx.Client, params: WhoamiInput) -> WhoamiResult:
    user = fetch_authenticated_user(client=client)
    return WhoamiResult(
        login=user.login,
        name=user.name,
        plan=user.plan_name if user.plan_name is not None else "unknown",
    )


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="create_repository",
        description=(
            "Create a GitHub repository under the authenticated user or a specified org."
        ),
        input_model=CreateRepositoryInput,
        handler=handle_create_repository,
    ),
    ToolDefinition(
        name="upsert_file",
        description=(
            "Create or update a file in a GitHub repo. Will create intermediate folders "
            "if needed. Commits directly to the specified branch."
        ),
        input_model=UpsertFileInput,
        handler=handle_upsert_file,
    ),
    ToolDefinition(
        name="create_branch",
        description="Create a new branch from an existing reference.",
        input_model=CreateBranchInput,
        handler=handle_create_branch,
    ),
    ToolDefinition(
        name="whoami",
        description="Return the authenticated GitHub user.",
        input_model=WhoamiInput,
        handler=handle_whoami,
    ),
)


def _format_validation_error(tool_name: str, error: ValidationError) -> str:
    """Summarize pydantic errors as one line per offending field."""
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return f"Invalid arguments for tool '{tool_name}': " + "; ".join(problems)


class ToolRegistry:
    """Fixed set of tools bound to one authenticated GitHub client."""

    def __init__(
        self,
        client: httpx.Client,
        definitions: tuple[ToolDefinition, ...] = TOOL_DEFINITIONS,
    ) -> None:
        self._client = client
        self._definitions = {definition.name: definition for definition in definitions}
        if len(self._definitions) != len(definitions):
            raise ValueError("Tool names must be unique.")

    @property
    def definitions(self) -> tuple[ToolDefinition, ...]:
        return tuple(self._definitions.values())

    def get(self, name: str) -> ToolDefinition:
        """Return the definition registered under a name."""
        try:
            return self._definitions[name]
        except KeyError as error:
            raise UnknownToolError(f"Unknown tool '{name}'.") from error

    def validate(self, name: str, arguments: Mapping[str, Any] | None) -> BaseModel:
        """Validate a payload against the named tool's input model."""
        definition = self.get(name)
        try:
            return definition.input_model.model_validate(dict(arguments or {}))
        except ValidationError as error:
            raise ToolInputError(_format_validation_error(name, error)) from error

    def invoke(self, name: str, arguments: Mapping[str, Any] | None) -> dict[str, object]:
        """Validate and run one tool invocation, returning its wire payload."""
        params = self.validate(name, arguments)
        definition = self.get(name)
        logger.info("Invoking tool '%s'.", name)
        result = definition.handler(self._client, params)
        return result.to_payload()
