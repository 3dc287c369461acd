from __future__ import annotations

from typing import Optional

import typer
from dotenv import load_dotenv

app = typer.Typer(add_completion=False, help="RSR compliance bot.")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on (default: PORT)"),
):
    """Run the webhook / API server."""
    load_dotenv(override=False)

    import uvicorn
    from config import settings

    uvicorn.run("main:app", host=host, port=port or settings.PORT, log_level=settings.LOG_LEVEL.lower())


@app.command()
def check(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    policy: Optional[str] = typer.Option(None, "--policy", help="Policy pack, overrides the repository's .rsr.toml"),
):
    """
    Evaluate one repository and print its compliance report as JSON.
    Exits 1 when Required checks failed.
    """
    load_dotenv(override=False)

    from config import settings
    from core.rsr.engine import check_compliance
    from core.rsr.models import PolicyPack
    from github_client import GitHubClient

    try:
        pack = PolicyPack(policy.lower()) if policy else None
    except ValueError:
        raise typer.BadParameter(f"unknown policy pack: {policy}", param_hint="--policy")

    report = check_compliance(
        owner,
        repo,
        GitHubClient.from_settings(settings),
        policy_pack=pack,
        default_policy=settings.DEFAULT_POLICY_PACK,
        max_workers=settings.MAX_CHECK_WORKERS,
    )
    typer.echo(report.model_dump_json(indent=2))
    if not report.required_passed:
        raise typer.Exit(code=1)


def main():
    app()


if __name__ == "__main__":
    main()
