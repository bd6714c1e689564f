"""Refresh the local channel data file from a remote source."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

from .config import Config, DataSourceConfig
from .validation import EntryValidationError, validate_entries

logger = logging.getLogger(__name__)

GITHUB_API_ROOT = "https://api.github.com"


class SyncError(RuntimeError):
    """Raised when remote channel data cannot be fetched or decoded."""


@dataclass(slots=True)
class SyncResult:
    """Outcome of a data refresh."""

    path: Path
    count: int
    source: str


def fetch_from_raw_url(
    url: str,
    *,
    token: str | None = None,
    timeout: float = 30.0,
    session: requests.Session | None = None,
) -> Any:
    logger.info("Fetching channel data from raw URL", extra={"context": {"url": url}})
    response = _get(session, url, token=token, timeout=timeout)
    try:
        return response.json()
    except ValueError as exc:
        raise SyncError(f"Response from {url} is not valid JSON: {exc}") from exc


def fetch_from_github_api(
    owner: str,
    repo: str,
    file_path: str,
    *,
    branch: str | None = None,
    token: str | None = None,
    timeout: float = 30.0,
    session: requests.Session | None = None,
) -> Any:
    """Download a JSON file through the GitHub contents API."""
    ref = branch or "main"
    logger.info(
        "Fetching channel data from GitHub API",
        extra={"context": {"owner": owner, "repo": repo, "path": file_path, "branch": ref}},
    )
    url = f"{GITHUB_API_ROOT}/repos/{owner}/{repo}/contents/{file_path.lstrip('/')}"
    response = _get(session, url, token=token, timeout=timeout, params={"ref": ref})
    try:
        payload = response.json()
    except ValueError as exc:
        raise SyncError(f"GitHub API response for {file_path} is not valid JSON: {exc}") from exc

    content = payload.get("content") if isinstance(payload, dict) else None
    if not content:
        raise SyncError("GitHub API response did not include a 'content' field.")
    try:
        decoded = base64.b64decode(content).decode("utf-8")
        return json.loads(decoded)
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SyncError(f"Unable to decode GitHub content for {file_path}: {exc}") from exc


def sync_data(config: Config, *, session: requests.Session | None = None) -> SyncResult:
    """Fetch, validate, and persist channel data according to ``config.data_source``.

    Without a configured remote source the existing local file is re-validated and
    rewritten in canonical form.
    """
    source = config.data_source
    target = config.data_file
    target.parent.mkdir(parents=True, exist_ok=True)

    data, origin = _fetch(source, target, session=session)
    validate_entries(data, require_category=True, source=origin)

    target.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    result = SyncResult(path=target, count=len(data), source=origin)
    logger.info(
        "Channel data synchronized",
        extra={"context": {"count": result.count, "out": str(target), "source": origin}},
    )
    return result


def run_sync(config: Config, *, session: requests.Session | None = None) -> SyncResult | None:
    """Run :func:`sync_data`, logging any failure once and returning ``None``."""
    try:
        return sync_data(config, session=session)
    except (SyncError, EntryValidationError, OSError) as exc:
        logger.error(
            "Data sync failed: %s",
            exc,
            extra={"context": {"error": type(exc).__name__, "detail": str(exc)}},
        )
        return None


def _fetch(
    source: DataSourceConfig,
    target: Path,
    *,
    session: requests.Session | None,
) -> tuple[Any, str]:
    if source.repo_url:
        data = fetch_from_raw_url(source.repo_url, token=source.token, timeout=source.timeout, session=session)
        return data, source.repo_url
    if source.uses_github_api:
        assert source.github_owner and source.github_repo and source.github_path
        data = fetch_from_github_api(
            source.github_owner,
            source.github_repo,
            source.github_path,
            branch=source.github_branch,
            token=source.token,
            timeout=source.timeout,
            session=session,
        )
        return data, f"github:{source.github_owner}/{source.github_repo}/{source.github_path}@{source.github_branch}"

    logger.warning("No remote data source configured; validating local data at %s", target)
    try:
        return json.loads(target.read_text(encoding="utf-8")), str(target)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise SyncError(f"Local data file {target} is not valid JSON: {exc}") from exc


def _get(
    session: requests.Session | None,
    url: str,
    *,
    token: str | None,
    timeout: float,
    params: dict[str, str] | None = None,
) -> requests.Response:
    headers: dict[str, str] = {}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    client = session or requests
    try:
        response = client.get(url, headers=headers, params=params, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise SyncError(f"Request to {url} failed: {exc}") from exc
    return response
