"""Previously accepted records — the baseline an update is diffed against.

A source answers one question: what is the accepted document stored at
this identity right now? ``None`` means nothing is stored yet. Sources
are injected into the pipeline, so tests substitute an in-memory map.

Storage key layout (shared by all sources):

    data/{network}/{systemconfig address, lowercase}.json
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

from rollup_registry.models.record import RECORD_FILE_EXTENSION

logger = logging.getLogger(__name__)


class RecordSourceError(Exception):
    """The source could not be read (I/O or transport failure)."""


class MalformedRecordError(RecordSourceError):
    """The stored document is not a JSON object."""


@dataclass(frozen=True)
class RecordIdentity:
    """Where a record lives: its network directory and SystemConfig address."""
    network: str
    config_address: str

    @property
    def storage_key(self) -> str:
        return f"data/{self.network}/{self.config_address.lower()}{RECORD_FILE_EXTENSION}"


class PreviousRecordSource(Protocol):
    def fetch_previous(self, identity: RecordIdentity) -> Optional[dict[str, Any]]: ...


def _parse(text: str, origin: str) -> dict[str, Any]:
    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedRecordError(f"Invalid JSON in {origin}: {exc}") from exc
    if not isinstance(document, dict):
        raise MalformedRecordError(
            f"Expected a JSON object in {origin}, got {type(document).__name__}"
        )
    return document


class InMemoryRecordSource:
    """Dict-backed source keyed by storage key."""

    def __init__(self, records: Optional[dict[str, Any]] = None) -> None:
        self._records: dict[str, Any] = dict(records or {})

    def put(self, identity: RecordIdentity, document: Any) -> None:
        self._records[identity.storage_key] = document

    def fetch_previous(self, identity: RecordIdentity) -> Optional[dict[str, Any]]:
        document = self._records.get(identity.storage_key)
        if document is None:
            return None
        if not isinstance(document, dict):
            raise MalformedRecordError(
                f"Expected a JSON object at {identity.storage_key}, "
                f"got {type(document).__name__}"
            )
        return document


class DirectoryRecordSource:
    """Reads accepted records from a local checkout of the registry."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def fetch_previous(self, identity: RecordIdentity) -> Optional[dict[str, Any]]:
        path = self.root / identity.storage_key
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RecordSourceError(f"Cannot read {path}: {exc}") from exc
        return _parse(text, str(path))


class RemoteRecordSource:
    """Fetches accepted records over HTTP from the registry's main branch."""

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout

    def fetch_previous(self, identity: RecordIdentity) -> Optional[dict[str, Any]]:
        url = self.base_url + identity.storage_key
        logger.debug("Fetching previous record from %s", url)
        try:
            with urllib.request.urlopen(url, timeout=self.timeout) as response:
                text = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            if exc.code == 404:
                return None
            raise RecordSourceError(f"HTTP {exc.code} fetching {url}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise RecordSourceError(f"Failed to fetch {url}: {exc}") from exc
        return _parse(text, url)
