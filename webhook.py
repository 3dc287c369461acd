"""
GitHub webhook handling: signature verification and per-event handlers.

push / pull_request re-run the compliance check and publish a check run;
repository.created opens an onboarding issue with the RSR checklist.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from config import Settings
from core.rsr.engine import check_compliance
from core.rsr.models import ComplianceReport, PolicyPack
from core.rsr.registry import APPROVED_LICENSES, BANNED_PATTERNS, REPO_CONFIG_PATH, REQUIRED_FILES, WORKFLOWS_CHECK
from core.rsr.report import check_run_conclusion, format_report_text
from github_client import CheckRunOutput, CreateCheckRun, GitHubClient, GitHubError


logger = logging.getLogger(__name__)

CHECK_RUN_NAME = "RSR Compliance"
ONBOARDING_TITLE = "[Rhodibot] RSR Compliance Checklist"
ONBOARDING_LABELS = ["documentation", "rsr-compliance"]
PR_ACTIONS = {"opened", "synchronize", "reopened"}


class WebhookPayloadError(ValueError):
    pass


# -----------------------------
# Signature
# -----------------------------

def verify_signature(secret: str, payload: bytes, signature: str) -> bool:
    """Check an X-Hub-Signature-256 header value against the raw body."""
    if not signature:
        return False
    if signature.startswith("sha256="):
        signature = signature[len("sha256="):]
    expected = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))


# -----------------------------
# Event payloads
# -----------------------------

class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Owner(_Payload):
    login: str


class Repository(_Payload):
    name: str
    default_branch: str = "main"
    owner: Owner


class PushEvent(_Payload):
    ref: str
    after: str
    repository: Repository


class PullRequestHead(_Payload):
    sha: str


class PullRequest(_Payload):
    number: int
    head: PullRequestHead


class PullRequestEvent(_Payload):
    action: str
    pull_request: PullRequest
    repository: Repository


class RepositoryEvent(_Payload):
    action: str
    repository: Repository


class Account(_Payload):
    login: str


class Installation(_Payload):
    account: Account


class InstallationEvent(_Payload):
    action: str
    installation: Installation


def _parse(model, body: bytes):
    try:
        return model.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        raise WebhookPayloadError(f"invalid {model.__name__} payload: {e}") from e


# -----------------------------
# Handlers
# -----------------------------

def _run_check(settings: Settings, client: GitHubClient, owner: str, repo: str) -> ComplianceReport:
    return check_compliance(
        owner,
        repo,
        client,
        default_policy=settings.DEFAULT_POLICY_PACK,
        max_workers=settings.MAX_CHECK_WORKERS,
    )


def build_check_run(report: ComplianceReport, head_sha: str) -> CreateCheckRun:
    return CreateCheckRun(
        name=CHECK_RUN_NAME,
        head_sha=head_sha,
        status="completed",
        conclusion=check_run_conclusion(report),
        output=CheckRunOutput(
            title=f"RSR Score: {report.percentage:.0f}%",
            summary=report.summary,
            text=format_report_text(report),
        ),
    )


def handle_push(settings: Settings, client: GitHubClient, body: bytes) -> Optional[ComplianceReport]:
    event: PushEvent = _parse(PushEvent, body)
    owner, repo = event.repository.owner.login, event.repository.name
    logger.info("Push to %s/%s on %s", owner, repo, event.ref)

    if event.ref != f"refs/heads/{event.repository.default_branch}":
        logger.info("Skipping non-default branch push")
        return None

    report = _run_check(settings, client, owner, repo)
    client.create_check_run(owner, repo, build_check_run(report, event.after))
    logger.info("Created check run for push to %s/%s", owner, repo)
    return report


def handle_pull_request(settings: Settings, client: GitHubClient, body: bytes) -> Optional[ComplianceReport]:
    event: PullRequestEvent = _parse(PullRequestEvent, body)
    owner, repo = event.repository.owner.login, event.repository.name
    logger.info("Pull request #%s %s on %s/%s", event.pull_request.number, event.action, owner, repo)

    if event.action not in PR_ACTIONS:
        return None

    report = _run_check(settings, client, owner, repo)
    client.create_check_run(owner, repo, build_check_run(report, event.pull_request.head.sha))
    logger.info("Created check run for pull request #%s", event.pull_request.number)
    return report


def onboarding_issue_body() -> str:
    required = "\n".join(f"- [ ] `{c.name}` - {c.description}" for c in REQUIRED_FILES)
    banned = "\n".join(f"- `{b.name}` - {b.description}" for b in BANNED_PATTERNS)
    licenses = ", ".join(sorted(APPROVED_LICENSES))
    packs = ", ".join(p.value for p in PolicyPack)

    return f"""## RSR Compliance Checklist

Welcome! Please make sure this repository follows the Rhodium Standard Repository guidelines.

### Required Files
{required}

### License
Use one of the approved licenses: {licenses}.

### Banned Files
{banned}

### CI/CD
- [ ] GitHub Actions workflows in `{WORKFLOWS_CHECK.name}/`
- [ ] SHA-pinned actions
- [ ] `permissions: read-all` on workflows

### Policy
Add a `{REPO_CONFIG_PATH}` to pick a policy pack ({packs}), adjust severities, or skip checks.

---
*This issue was created automatically by Rhodibot*
"""


def handle_repository(settings: Settings, client: GitHubClient, body: bytes) -> None:
    event: RepositoryEvent = _parse(RepositoryEvent, body)
    owner, repo = event.repository.owner.login, event.repository.name
    logger.info("Repository %s %s/%s", event.action, owner, repo)

    if event.action != "created":
        return

    try:
        issue = client.create_issue(
            owner,
            repo,
            title=ONBOARDING_TITLE,
            body=onboarding_issue_body(),
            labels=ONBOARDING_LABELS,
        )
    except (GitHubError, requests.RequestException) as e:
        logger.warning("Failed to create onboarding issue for %s/%s: %s", owner, repo, e)
        return
    logger.info("Created RSR checklist issue: %s", issue.html_url)


def handle_installation(settings: Settings, client: GitHubClient, body: bytes) -> None:
    event: InstallationEvent = _parse(InstallationEvent, body)
    logger.info("Installation %s for %s", event.action, event.installation.account.login)


HANDLERS = {
    "push": handle_push,
    "pull_request": handle_pull_request,
    "repository": handle_repository,
    "installation": handle_installation,
    "installation_repositories": handle_installation,
}


def dispatch(event_type: str, settings: Settings, client: GitHubClient, body: bytes) -> None:
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info("Ignoring event type: %s", event_type)
        return
    handler(settings, client, body)
