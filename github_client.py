"""
github_client.py — thin GitHub REST client used by Rhodibot.

Read side doubles as the compliance engine's oracle:
- file_exists: HEAD on the contents API; 404 and transport errors are False
- get_repository: repository metadata (default branch, license)
- get_file_content: raw file body or None

Write side publishes results: issues and check runs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
from pydantic import BaseModel, ConfigDict

from core.rsr.models import RepositoryInfo

logger = logging.getLogger(__name__)

USER_AGENT = "rhodibot"
JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"


# -----------------------------
# Types
# -----------------------------

class Issue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    number: int
    title: str
    html_url: str


class CheckRunOutput(BaseModel):
    title: str
    summary: str
    text: Optional[str] = None


class CreateCheckRun(BaseModel):
    name: str
    head_sha: str
    status: str = "completed"
    conclusion: Optional[str] = None
    output: Optional[CheckRunOutput] = None


class CheckRun(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    status: str


class GitHubError(RuntimeError):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code


# -----------------------------
# Client
# -----------------------------

class GitHubClient:
    def __init__(
        self,
        base_url: str = "https://api.github.com",
        token: Optional[str] = None,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    @classmethod
    def from_settings(cls, settings) -> "GitHubClient":
        return cls(
            base_url=settings.GITHUB_API_URL,
            token=settings.GITHUB_TOKEN,
            timeout=settings.GITHUB_TIMEOUT,
        )

    def _headers(self, accept: str = JSON_MEDIA_TYPE) -> Dict[str, str]:
        headers = {"Accept": accept, "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _repo_url(self, owner: str, repo: str, *parts: str) -> str:
        url = f"{self.base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
        for p in parts:
            url += "/" + quote(p.strip("/"))
        return url

    def _send(self, method: str, url: str, *, accept: str = JSON_MEDIA_TYPE, json: Any = None) -> requests.Response:
        r = self.session.request(method, url, headers=self._headers(accept), json=json, timeout=self.timeout)
        if r.status_code < 200 or r.status_code >= 300:
            raise GitHubError(r.status_code, r.text)
        return r

    # ---- read ----

    def get_repository(self, owner: str, repo: str) -> RepositoryInfo:
        r = self._send("GET", self._repo_url(owner, repo))
        return RepositoryInfo.model_validate(r.json())

    def file_exists(self, owner: str, repo: str, path: str) -> bool:
        url = self._repo_url(owner, repo, "contents", path)
        try:
            r = self.session.request("HEAD", url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            # outages read as absence
            logger.warning("Existence probe failed for %s/%s:%s: %s", owner, repo, path, e)
            return False
        return 200 <= r.status_code < 300

    def get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        url = self._repo_url(owner, repo, "contents", path)
        try:
            r = self._send("GET", url, accept=RAW_MEDIA_TYPE)
        except GitHubError as e:
            if e.status_code != 404:
                logger.warning("Could not fetch %s from %s/%s: %s", path, owner, repo, e)
            return None
        except requests.RequestException as e:
            logger.warning("Could not fetch %s from %s/%s: %s", path, owner, repo, e)
            return None
        return r.text

    # ---- write ----

    def create_issue(self, owner: str, repo: str, *, title: str, body: str, labels: List[str]) -> Issue:
        payload = {"title": title, "body": body, "labels": list(labels)}
        r = self._send("POST", self._repo_url(owner, repo, "issues"), json=payload)
        return Issue.model_validate(r.json())

    def create_check_run(self, owner: str, repo: str, check_run: CreateCheckRun) -> CheckRun:
        r = self._send(
            "POST",
            self._repo_url(owner, repo, "check-runs"),
            json=check_run.model_dump(exclude_none=True),
        )
        return CheckRun.model_validate(r.json())
