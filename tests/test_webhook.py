"""
Unit tests for webhook.py

Tests cover:
- verify_signature() for valid, tampered and malformed signatures
- push / pull_request handlers publishing check runs
- repository.created onboarding issue
- payload validation and event dispatch
"""
import hashlib
import hmac
import json

import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import webhook
from config import Settings
from github_client import GitHubError
from fakes import ALL_REQUIRED, FakeRepository


SECRET = "s3cret"


def sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def settings():
    return Settings(_env_file=None, MAX_CHECK_WORKERS=1)


def repo_payload(default_branch="main"):
    return {"name": "widget", "default_branch": default_branch, "owner": {"login": "acme"}}


def push_body(ref="refs/heads/main", after="deadbeef"):
    return json.dumps({"ref": ref, "after": after, "repository": repo_payload()}).encode()


def pr_body(action="opened", sha="cafe"):
    return json.dumps({
        "action": action,
        "pull_request": {"number": 7, "head": {"sha": sha}},
        "repository": repo_payload(),
    }).encode()


class TestVerifySignature:
    """HMAC-SHA256 webhook signatures"""

    def test_valid(self):
        body = b'{"zen": "ok"}'
        assert webhook.verify_signature(SECRET, body, sign(body)) is True

    def test_valid_without_prefix(self):
        body = b'{"zen": "ok"}'
        assert webhook.verify_signature(SECRET, body, sign(body)[len("sha256="):]) is True

    def test_tampered_body(self):
        body = b'{"zen": "ok"}'
        assert webhook.verify_signature(SECRET, b'{"zen": "no"}', sign(body)) is False

    def test_wrong_secret(self):
        body = b"{}"
        assert webhook.verify_signature(SECRET, body, sign(body, "other")) is False

    def test_garbage(self):
        assert webhook.verify_signature(SECRET, b"{}", "sha256=not-hex") is False

    def test_empty(self):
        assert webhook.verify_signature(SECRET, b"{}", "") is False


class TestHandlePush:
    """Push events"""

    def test_default_branch_publishes_check_run(self):
        fake = FakeRepository(present=ALL_REQUIRED, license_key="mit")
        report = webhook.handle_push(settings(), fake, push_body())

        assert report is not None
        assert len(fake.check_runs) == 1
        owner, repo, run = fake.check_runs[0]
        assert (owner, repo) == ("acme", "widget")
        assert run.name == "RSR Compliance"
        assert run.head_sha == "deadbeef"
        assert run.conclusion == "success"
        assert run.output.title == "RSR Score: 100%"
        assert run.output.summary == "Excellent RSR compliance (standard)"
        assert "## Detailed Results" in run.output.text

    def test_required_failure_concludes_failure(self):
        fake = FakeRepository()
        webhook.handle_push(settings(), fake, push_body())
        _, _, run = fake.check_runs[0]
        assert run.conclusion == "failure"

    def test_other_branch_ignored(self):
        fake = FakeRepository()
        assert webhook.handle_push(settings(), fake, push_body(ref="refs/heads/feature")) is None
        assert fake.check_runs == []
        assert fake.probed == []


class TestHandlePullRequest:
    """Pull request events"""

    @pytest.mark.parametrize("action", ["opened", "synchronize", "reopened"])
    def test_checked_actions(self, action):
        fake = FakeRepository(present=ALL_REQUIRED, license_key="mit")
        webhook.handle_pull_request(settings(), fake, pr_body(action=action, sha="f00d"))

        _, _, run = fake.check_runs[0]
        assert run.head_sha == "f00d"

    def test_closed_ignored(self):
        fake = FakeRepository()
        assert webhook.handle_pull_request(settings(), fake, pr_body(action="closed")) is None
        assert fake.check_runs == []


class TestHandleRepository:
    """Repository events"""

    def test_created_opens_onboarding_issue(self):
        fake = FakeRepository()
        body = json.dumps({"action": "created", "repository": repo_payload()}).encode()
        webhook.handle_repository(settings(), fake, body)

        assert len(fake.issues) == 1
        issue = fake.issues[0]
        assert issue["title"] == "[Rhodibot] RSR Compliance Checklist"
        assert issue["labels"] == ["documentation", "rsr-compliance"]
        assert "- [ ] `README.adoc` - AsciiDoc README" in issue["body"]
        assert "`go.mod` - Go module (use Rust)" in issue["body"]
        assert ".rsr.toml" in issue["body"]

    def test_other_actions_ignored(self):
        fake = FakeRepository()
        body = json.dumps({"action": "archived", "repository": repo_payload()}).encode()
        webhook.handle_repository(settings(), fake, body)
        assert fake.issues == []

    def test_issue_failure_is_not_raised(self):
        fake = FakeRepository(issue_error=GitHubError(403, "forbidden"))
        body = json.dumps({"action": "created", "repository": repo_payload()}).encode()
        webhook.handle_repository(settings(), fake, body)
        assert fake.issues == []


class TestDispatch:
    """Event routing and payload validation"""

    def test_invalid_json(self):
        with pytest.raises(webhook.WebhookPayloadError):
            webhook.handle_push(settings(), FakeRepository(), b"not json")

    def test_missing_fields(self):
        with pytest.raises(webhook.WebhookPayloadError):
            webhook.handle_push(settings(), FakeRepository(), b'{"ref": "refs/heads/main"}')

    def test_unknown_event_ignored(self):
        fake = FakeRepository()
        webhook.dispatch("star", settings(), fake, b"{}")
        assert fake.probed == []

    def test_installation_logged(self):
        body = json.dumps({"action": "created", "installation": {"account": {"login": "acme"}}}).encode()
        webhook.dispatch("installation", settings(), FakeRepository(), body)

    def test_push_routed(self):
        fake = FakeRepository()
        webhook.dispatch("push", settings(), fake, push_body())
        assert len(fake.check_runs) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
