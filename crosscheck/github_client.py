"""GitHub API client for commit authorship metadata."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import httpx
import jwt

from crosscheck.config import GitHubAppCredentials
from crosscheck.models.review import AuthorRecord, CommitInfo


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, status_code: int, response_body: Any | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


DEFAULT_ACCEPT_HEADER = "application/vnd.github+json"
DEFAULT_API_VERSION = "2022-11-28"

_CO_AUTHOR_PATTERN = re.compile(r"Co-Authored-By:\s*([^<\n]+)<([^>\n]+)>", re.IGNORECASE)


def parse_co_authors(message: str) -> List[AuthorRecord]:
    """Extract ``Co-Authored-By: Name <email>`` trailers from a commit message."""

    co_authors: List[AuthorRecord] = []
    for match in _CO_AUTHOR_PATTERN.finditer(message or ""):
        name = match.group(1).strip()
        email = match.group(2).strip()
        co_authors.append(
            AuthorRecord(
                name=name or None,
                email=email or None,
                login=re.sub(r"\s+", "-", name.lower()) or None,
            )
        )
    return co_authors


def commit_from_api(data: Dict[str, Any]) -> CommitInfo:
    """Convert a REST commit object (single commit or PR commit entry)."""

    commit = data.get("commit") or {}
    git_author = commit.get("author") or {}
    git_committer = commit.get("committer") or {}
    account = data.get("author") or {}
    message = commit.get("message") or ""
    headline, _, body = message.partition("\n")

    primary = AuthorRecord(
        name=git_author.get("name") or None,
        email=git_author.get("email") or None,
        login=account.get("login") or None,
        id=str(account["id"]) if account.get("id") is not None else None,
    )
    return CommitInfo(
        oid=data.get("sha") or "",
        message_headline=headline,
        message_body=body,
        authored_date=git_author.get("date"),
        committed_date=git_committer.get("date"),
        authors=[primary, *parse_co_authors(message)],
    )


@dataclass
class InstallationToken:
    token: str
    expires_at: datetime

    def is_active(self, *, skew_seconds: int = 60) -> bool:
        """Return True if the token is still valid accounting for clock skew."""

        return self.expires_at - timedelta(seconds=skew_seconds) > datetime.now(timezone.utc)


class GitHubClient:
    """Read-only commit lookups, authenticated by token, GitHub App, or not at all."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str | None = None,
        app_credentials: GitHubAppCredentials | None = None,
        timeout: float = 10.0,
        user_agent: str = "code-crosscheck/0.1",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._app_credentials = app_credentials
        if app_credentials is not None:
            # Normalize private key: handle escaped newlines from environment variables
            self._private_key = app_credentials.private_key_pem.replace("\\n", "\n")
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            headers={
                "User-Agent": user_agent,
                "Accept": DEFAULT_ACCEPT_HEADER,
                "X-GitHub-Api-Version": DEFAULT_API_VERSION,
            },
        )
        self._owns_client = client is None
        self._installation_token: InstallationToken | None = None

    def _build_jwt(self) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "iat": int((now - timedelta(seconds=60)).timestamp()),
            "exp": int((now + timedelta(minutes=10)).timestamp()),
            "iss": str(self._app_credentials.app_id),
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm="RS256")
        except Exception as exc:
            raise GitHubAPIError(
                f"Failed to encode JWT: {exc}. Check that GITHUB_PRIVATE_KEY is a valid RSA private key in PEM format.",
                0,
                None,
            ) from exc

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str] | None = None,
        params: Dict[str, Any] | None = None,
        json: Any | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=headers, params=params, json=json)
        except httpx.HTTPError as exc:
            raise GitHubAPIError(f"GitHub API request to {url} failed: {exc}", 0, None) from exc
        if response.status_code >= 400:
            detail: Any | None
            if response.content:
                try:
                    detail = response.json()
                except ValueError:
                    detail = response.text
            else:
                detail = None
            raise GitHubAPIError(
                f"GitHub API request to {url} failed with status {response.status_code}.",
                response.status_code,
                detail,
            )
        return response

    async def _fetch_installation_token(self) -> InstallationToken:
        installation_id = self._app_credentials.installation_id
        response = await self._request(
            "POST",
            f"/app/installations/{installation_id}/access_tokens",
            headers={"Authorization": f"Bearer {self._build_jwt()}"},
        )
        data = response.json()
        token_value = data.get("token")
        expires_at_raw = data.get("expires_at")
        if not token_value or not expires_at_raw:
            raise GitHubAPIError(
                "GitHub did not return a usable installation token.",
                response.status_code,
                data,
            )
        return InstallationToken(token=token_value, expires_at=_parse_github_timestamp(expires_at_raw))

    async def _auth_headers(self) -> Dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        if self._app_credentials is None:
            return {}
        if self._installation_token is None or not self._installation_token.is_active():
            self._installation_token = await self._fetch_installation_token()
        return {"Authorization": f"Bearer {self._installation_token.token}"}

    @staticmethod
    def _split_full_name(full_name: str | None) -> tuple[str, str]:
        if not full_name or "/" not in full_name:
            raise ValueError(f"Repository full name '{full_name}' is invalid. Expected 'owner/repo'.")
        owner, repo = full_name.split("/", 1)
        return owner, repo

    async def fetch_commit(self, commit_hash: str, repo: str | None) -> CommitInfo:
        owner, name = self._split_full_name(repo)
        response = await self._request(
            "GET",
            f"/repos/{owner}/{name}/commits/{commit_hash}",
            headers=await self._auth_headers(),
        )
        return commit_from_api(response.json())

    async def fetch_pr_commits(self, pr_number: int | str, repo: str | None) -> List[CommitInfo]:
        owner, name = self._split_full_name(repo)
        headers = await self._auth_headers()

        commits: List[CommitInfo] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                f"/repos/{owner}/{name}/pulls/{pr_number}/commits",
                headers=headers,
                params={"per_page": 100, "page": page},
            )
            batch = response.json()
            if not isinstance(batch, list):
                raise GitHubAPIError(
                    "Unexpected response while listing pull request commits.",
                    response.status_code,
                    batch,
                )
            commits.extend(commit_from_api(item) for item in batch)
            if len(batch) < 100:
                break
            page += 1
        return commits

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None


def _parse_github_timestamp(raw: str) -> datetime:
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw).astimezone(timezone.utc)
