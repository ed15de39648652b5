"""GitHub Releases REST calls used by the publisher.

Only two endpoints are needed:
  - GET  /repos/{owner}/{repo}/releases            (paginated via Link headers)
  - POST /repos/{owner}/{repo}/releases/{id}/assets on the uploads host

Nothing is retried; a non-success status raises GitHubApiError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import requests

from ..config import GitHubSettings
from ..errors import GitHubApiError


@dataclass(frozen=True)
class Asset:
    name: str
    id: Optional[int] = None
    size: Optional[int] = None


@dataclass(frozen=True)
class Release:
    id: int
    tag_name: str
    assets: List[Asset] = field(default_factory=list)
    upload_url: str = ""

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Release":
        assets = [
            Asset(name=str(a.get("name", "")), id=a.get("id"), size=a.get("size"))
            for a in (payload.get("assets") or [])
            if isinstance(a, dict)
        ]
        return cls(
            id=payload["id"],
            tag_name=str(payload.get("tag_name", "")),
            assets=assets,
            upload_url=str(payload.get("upload_url") or ""),
        )


def find_release(releases: Iterable[Release], tag: str) -> Optional[Release]:
    for r in releases:
        if r.tag_name == tag:
            return r
    return None


def find_asset(release: Release, name: str) -> Optional[Asset]:
    for a in release.assets:
        if a.name == name:
            return a
    return None


def _api_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "nexe-builds-publisher",
    }


class GitHubReleasesClient:
    def __init__(self, *, settings: GitHubSettings, token: str, session: Optional[Any] = None):
        self.settings = settings
        self.token = token
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "GitHubReleasesClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            return self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise GitHubApiError(f"GitHub API request failed: {method} {url}: {e}") from e

    @property
    def repo_path(self) -> str:
        return f"repos/{self.settings.owner}/{self.settings.repo}"

    def list_releases(self) -> List[Release]:
        url: Optional[str] = f"{self.settings.api_base}/{self.repo_path}/releases"
        params: Optional[Dict[str, Any]] = {"per_page": 100}
        out: List[Release] = []
        while url:
            r = self._send(
                "GET",
                url,
                headers=_api_headers(self.token),
                params=params,
                timeout=self.settings.timeout_seconds,
            )
            if r.status_code != 200:
                raise GitHubApiError(
                    f"GitHub API error listing releases: {r.status_code}: {r.text[:2000]}",
                    status_code=r.status_code,
                )
            try:
                payload = r.json()
            except ValueError:
                payload = None
            if not isinstance(payload, list) or not all(isinstance(p, dict) and "id" in p for p in payload):
                raise GitHubApiError(
                    f"GitHub API returned an unexpected releases payload: {r.text[:2000]}",
                    status_code=r.status_code,
                )
            out.extend(Release.from_api(p) for p in payload)
            # The next link already carries the query string.
            url = (r.links or {}).get("next", {}).get("url")
            params = None
        return out

    def upload_asset(
        self,
        *,
        release_id: int,
        name: str,
        data: bytes,
        content_type: str = "application/x-binary",
    ) -> Dict[str, Any]:
        headers = _api_headers(self.token)
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(data))

        r = self._send(
            "POST",
            f"{self.settings.uploads_base}/{self.repo_path}/releases/{release_id}/assets",
            headers=headers,
            params={"name": name},
            data=data,
            timeout=self.settings.upload_timeout_seconds,
        )
        if r.status_code != 201:
            raise GitHubApiError(
                f"GitHub API error uploading asset {name}: {r.status_code}: {r.text[:2000]}",
                status_code=r.status_code,
            )
        return r.json()
