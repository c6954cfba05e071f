"""Typer CLI for the GitHub MCP server."""

from __future__ import annotations

from typing import Annotated

import anyio
import httpx
import typer

from github_mcp.config import load_settings
from github_mcp.github_client import (
    DEFAULT_TIMEOUT_SECONDS,
    GitHubApiError,
    GitHubAuthError,
    build_github_client,
    fetch_authenticated_user_login,
    get_github_token_with_source,
)
from github_mcp.observability import configure_logging
from github_mcp.server import run_stdio_server
from github_mcp.tools import ToolRegistry

app = typer.Typer(help="GitHub repository tools served over MCP stdio.")


@app.command("serve")
def serve_command() -> None:
    """Run the MCP server on stdin/stdout."""
    try:
        settings = load_settings()
    except (GitHubAuthError, ValueError) as error:
        typer.echo(f"github-mcp cannot start: {error}", err=True)
        raise typer.Exit(code=1) from error

    configure_logging(settings.log_level)
    with build_github_client(
        timeout_seconds=settings.timeout_seconds,
        token=settings.token,
    ) as client:
        registry = ToolRegistry(client)
        anyio.run(run_stdio_server, registry)


@app.command("auth-check")
def auth_check_command(
    timeout_seconds: Annotated[
        float, typer.Option(help="GitHub API timeout in seconds for the validation call.")
    ] = DEFAULT_TIMEOUT_SECONDS,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
) -> None:
    """Validate GitHub token setup."""
    try:
        token, token_source = get_github_token_with_source()
    except GitHubAuthError as error:
        typer.echo(f"GitHub auth check failed: {error}")
        raise typer.Exit(code=1) from error

    typer.echo(f"Token detected in {token_source}.")

    try:
        with build_github_client(
            timeout_seconds=timeout_seconds,
            token=token,
            trust_env=trust_env,
        ) as client:
            login = fetch_authenticated_user_login(client=client)
    except GitHubApiError as error:
        typer.echo(
            "GitHub auth check failed: "
            f"status={error.status_code} endpoint={error.endpoint}."
        )
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        typer.echo(f"GitHub auth check failed: network error ({error}).")
        raise typer.Exit(code=1) from error
    except ImportError as error:
        typer.echo(
            "GitHub auth check failed: proxy transport dependency is missing. "
            "Try `github-mcp auth-check --no-trust-env`, or install `httpx[socks]`."
        )
        raise typer.Exit(code=1) from error

    typer.echo(f"Authenticated as GitHub user '{login}'.")
    typer.echo("GitHub token setup is valid.")
