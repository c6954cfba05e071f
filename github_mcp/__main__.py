from github_mcp.cli import app

app(prog_name="github-mcp")
