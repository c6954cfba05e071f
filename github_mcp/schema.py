"""Input and result contracts for the GitHub tools."""

from __future__ import annotations

from enum import StrEnum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictBool,
    StrictStr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from github_mcp.github_client import GitHubInputError, decode_content

DEFAULT_COMMIT_MESSAGE = "Automated commit from MCP server"
DEFAULT_BRANCH = "main"


class FileEncoding(StrEnum):
    """Encodings accepted for upserted file content."""

    UTF8 = "utf-8"
    BASE64 = "base64"


class CreateRepositoryInput(BaseModel):
    """Arguments for creating a repository."""

    model_config = ConfigDict(extra="forbid")

    name: StrictStr = Field(min_length=1, description="Repository name.")
    description: StrictStr | None = Field(default=None, description="Repository description.")
    private: StrictBool = Field(default=True, description="Create the repository as private.")
    org: StrictStr | None = Field(
        default=None,
        min_length=1,
        description="Organization to create the repository in. Omit for a personal repository.",
    )


class UpsertFileInput(BaseModel):
    """Arguments for creating or updating one file on a branch."""

    model_config = ConfigDict(extra="forbid")

    owner: StrictStr | None = Field(
        default=None,
        min_length=1,
        description="Repository owner. Defaults to the authenticated user.",
    )
    repo: StrictStr = Field(min_length=1)
    path: StrictStr = Field(min_length=1, description="File path inside the repository.")
    message: StrictStr = Field(default=DEFAULT_COMMIT_MESSAGE, description="Commit message.")
    content: StrictStr = Field(description="File content, encoded per `encoding`.")
    branch: StrictStr = Field(default=DEFAULT_BRANCH, min_length=1)
    encoding: FileEncoding = FileEncoding.UTF8

    _raw_content: bytes = PrivateAttr(default=b"")

    @field_validator("path")
    @classmethod
    def validate_path(cls, value: str) -> str:
        """Reject paths that name the repository root."""
        if not value.lstrip("/"):
            raise ValueError("path must name a file, not the repository root.")
        return value

    @model_validator(mode="after")
    def validate_content_encoding(self) -> UpsertFileInput:
        """Decode content once under the declared encoding, rejecting invalid input."""
        try:
            self._raw_content = decode_content(self.content, self.encoding.value)
        except GitHubInputError as error:
            raise ValueError(str(error)) from error
        return self

    def raw_content(self) -> bytes:
        """Return the decoded file bytes."""
        return self._raw_content


class CreateBranchInput(BaseModel):
    """Arguments for creating a branch from an existing one."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    owner: StrictStr | None = Field(
        default=None,
        min_length=1,
        description="Repository owner. Defaults to the authenticated user.",
    )
    repo: StrictStr = Field(min_length=1)
    from_branch: StrictStr = Field(
        default=DEFAULT_BRANCH,
        alias="from",
        min_length=1,
        description="Existing branch to branch from.",
    )
    to: StrictStr = Field(min_length=1, description="Name of the branch to create.")


class WhoamiInput(BaseModel):
    """The whoami tool takes no arguments."""

    model_config = ConfigDict(extra="forbid")


class ToolResult(BaseModel):
    """Base for tool results, serialized with camelCase keys."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, object]:
        """Dump the result in its wire shape."""
        return self.model_dump(mode="json", by_alias=True)


class RepositoryResult(ToolResult):
    repo: str
    url: str
    default_branch: str


class FileCommitResult(ToolResult):
    commit_sha: str
    download_url: str | None
    html_url: str | None


class BranchResult(ToolResult):
    branch: str
    sha: str


class WhoamiResult(ToolResult):
    login: str
    name: str | None
    plan: str = "unknown"
