"""Item metadata: the catalog lookup interface and the per-run cache.

The catalog itself (authentication, rate limits, HTTP) lives outside this
project. Anything that can answer ``lookup(item_id)`` with an
``ItemAttributes`` or a ``MetadataLookupError`` can back the exporter.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

logger = logging.getLogger(__name__)


class MetadataLookupError(Exception):
    """Raised when an item's attributes cannot be obtained."""


class MetadataNotFoundError(MetadataLookupError):
    """Raised when the catalog has no entry for an item."""


@dataclass(frozen=True)
class ItemAttributes:
    """Display attributes of one item."""

    display_name: str
    catalog_ref: Optional[str] = None
    cover_image_ref: Optional[str] = None


class MetadataSource(ABC):
    """Anything that resolves item ids to display attributes."""

    @abstractmethod
    def lookup(self, item_id: str) -> ItemAttributes:
        """Return the item's attributes.

        Raises:
            MetadataLookupError: if they cannot be obtained.
        """


class DictMetadataSource(MetadataSource):
    """Attributes already held in memory."""

    def __init__(self, attributes: Mapping[str, ItemAttributes]):
        self._attributes = dict(attributes)

    def lookup(self, item_id: str) -> ItemAttributes:
        try:
            return self._attributes[item_id]
        except KeyError:
            raise MetadataNotFoundError(f"No metadata for {item_id!r}") from None


class JsonMetadataSource(MetadataSource):
    """Attributes read from a catalog dump (``meta.json``).

    The dump is a JSON list of catalog entries, each with an ``id`` and a
    ``name`` and optionally ``cover: {"url": ...}``. Integer ids are catalog
    ids and double as the catalog reference.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._attributes = self._load()

    def _load(self) -> Dict[str, ItemAttributes]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise MetadataLookupError(f"Cannot read metadata file {self.path}: {e}") from e
        if not isinstance(entries, list):
            raise MetadataLookupError(f"Metadata file {self.path} must hold a list of entries")

        attributes: Dict[str, ItemAttributes] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Skipping metadata entry that is not an object: %r", entry)
                continue
            raw_id = entry.get("id")
            name = entry.get("name")
            if raw_id is None or not name:
                logger.warning("Skipping metadata entry without id or name: %s", entry)
                continue
            is_catalog_id = isinstance(raw_id, int) and not isinstance(raw_id, bool)
            cover = entry.get("cover") or {}
            attributes[str(raw_id).strip()] = ItemAttributes(
                display_name=name,
                catalog_ref=str(raw_id) if is_catalog_id else None,
                cover_image_ref=cover.get("url"),
            )

        logger.info("Loaded metadata for %d items from %s", len(attributes), self.path.name)
        return attributes

    def lookup(self, item_id: str) -> ItemAttributes:
        try:
            return self._attributes[item_id]
        except KeyError:
            raise MetadataNotFoundError(
                f"No metadata for {item_id!r} in {self.path.name}"
            ) from None


class MetadataCache:
    """Lookup results for one run, shared by the exporter's worker threads.

    Failures are remembered too, so no item is looked up twice in a run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._resolved: Dict[str, ItemAttributes] = {}
        self._failed: Dict[str, str] = {}

    def get(self, item_id: str) -> Optional[ItemAttributes]:
        with self._lock:
            return self._resolved.get(item_id)

    def has_failed(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._failed

    def store(self, item_id: str, attributes: ItemAttributes) -> None:
        with self._lock:
            self._resolved[item_id] = attributes
            self._failed.pop(item_id, None)

    def store_failure(self, item_id: str, reason: str) -> None:
        with self._lock:
            self._failed[item_id] = reason

    def __contains__(self, item_id) -> bool:
        with self._lock:
            return item_id in self._resolved or item_id in self._failed

    def __len__(self) -> int:
        with self._lock:
            return len(self._resolved) + len(self._failed)
