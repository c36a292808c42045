"""Series exporter - flattens timelines and tracks into renderer rows.

Produces one ``DataPoint`` per (item, episode) where the item is on the
list, ordered by episode then rank. Display attributes come from the
metadata source; a failed lookup only costs the item its display name.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import pandas as pd

from src.layout_engine.models import TrackAssignment
from src.list_history.state_machine import ItemTimeline
from src.series_export.config import (
    DATAPOINT_COLUMNS,
    LOOKUP_TIMEOUT_SECONDS,
    MAX_LOOKUP_WORKERS,
)
from src.series_export.metadata import (
    ItemAttributes,
    MetadataCache,
    MetadataLookupError,
    MetadataSource,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataPoint:
    """One plotted point: an item's rank and track at one episode."""

    episode: int
    item_id: str
    rank: int
    track: int
    display_name: str
    catalog_ref: Optional[str] = None
    cover_image_ref: Optional[str] = None


class SeriesExporter:
    """Joins timelines, tracks and metadata into ordered ``DataPoint`` rows.

    Metadata lookups fan out over a bounded thread pool, one request per
    distinct item. ``timeout`` bounds the whole fan-out; items still
    pending then keep their identifier as label.
    """

    def __init__(
        self,
        max_workers: int = MAX_LOOKUP_WORKERS,
        timeout: Optional[float] = LOOKUP_TIMEOUT_SECONDS,
        cache: Optional[MetadataCache] = None,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.timeout = timeout
        self.cache = cache if cache is not None else MetadataCache()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def export(
        self,
        timelines: Mapping[str, ItemTimeline],
        track_assignment: TrackAssignment,
        metadata_lookup: Optional[MetadataSource] = None,
    ) -> List[DataPoint]:
        """Build the ordered rows for the renderer.

        Args:
            timelines: Item id -> timeline, as produced by the state machine.
            track_assignment: Tracks for the same snapshots.
            metadata_lookup: Source of display attributes. With None every
                item is labelled by its identifier.

        Returns:
            ``DataPoint`` rows ordered by episode, then rank.

        Raises:
            ValueError: if an item is present at an episode that has no
                track for it (timelines and tracks from different runs).
        """
        rows = []
        for item_id, timeline in timelines.items():
            for episode, rank in timeline.present_entries():
                track = track_assignment.track_of(item_id, episode)
                if track is None:
                    raise ValueError(f"No track for item {item_id!r} at episode {episode}")
                rows.append((episode, rank, item_id, track))
        rows.sort()

        item_ids = list(dict.fromkeys(item_id for _, _, item_id, _ in rows))
        attributes = self.resolve_metadata(item_ids, metadata_lookup)

        points = []
        for episode, rank, item_id, track in rows:
            attrs = attributes.get(item_id)
            points.append(
                DataPoint(
                    episode=episode,
                    item_id=item_id,
                    rank=rank,
                    track=track,
                    display_name=attrs.display_name if attrs else item_id,
                    catalog_ref=attrs.catalog_ref if attrs else None,
                    cover_image_ref=attrs.cover_image_ref if attrs else None,
                )
            )

        logger.info(
            "Exported %d data points for %d items (%d without metadata)",
            len(points),
            len(item_ids),
            len(item_ids) - len(attributes),
        )
        return points

    def resolve_metadata(
        self,
        item_ids: Iterable[str],
        metadata_lookup: Optional[MetadataSource],
    ) -> Dict[str, ItemAttributes]:
        """Look up attributes for the items, using and filling the cache.

        Returns only the items that resolved; lookup failures and timeouts
        are logged and left out.
        """
        item_ids = list(item_ids)
        resolved: Dict[str, ItemAttributes] = {}
        pending = []
        for item_id in item_ids:
            cached = self.cache.get(item_id)
            if cached is not None:
                resolved[item_id] = cached
            elif not self.cache.has_failed(item_id):
                pending.append(item_id)

        if metadata_lookup is None or not pending:
            return resolved

        logger.info(
            "Looking up metadata for %d items (%d cached)", len(pending), len(resolved)
        )
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(pending)),
            thread_name_prefix="metadata",
        )
        futures = {executor.submit(metadata_lookup.lookup, item_id): item_id for item_id in pending}
        collected = set()
        try:
            for future in as_completed(futures, timeout=self.timeout):
                collected.add(future)
                self._collect(futures[future], future, resolved)
        except FuturesTimeoutError:
            unfinished = []
            for future, item_id in futures.items():
                if future in collected:
                    continue
                if future.done() and not future.cancelled():
                    # Finished after the deadline but before this sweep
                    self._collect(item_id, future, resolved)
                else:
                    unfinished.append(item_id)
            unfinished.sort()
            logger.warning(
                "Metadata lookups timed out after %ss; %d items labelled by id: %s",
                self.timeout,
                len(unfinished),
                unfinished,
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return resolved

    def _collect(self, item_id: str, future, resolved: Dict[str, ItemAttributes]) -> None:
        """Record one finished lookup in the cache and in ``resolved``."""
        try:
            attrs = future.result()
        except MetadataLookupError as e:
            logger.warning("Metadata lookup failed for %s, labelling it by id: %s", item_id, e)
            self.cache.store_failure(item_id, str(e))
            return
        except Exception as e:
            logger.warning(
                "Metadata source error for %s, labelling it by id: %s", item_id, e, exc_info=True
            )
            self.cache.store_failure(item_id, f"{type(e).__name__}: {e}")
            return
        self.cache.store(item_id, attrs)
        resolved[item_id] = attrs


# ------------------------------------------------------------------
# Tabular output
# ------------------------------------------------------------------

def to_dataframe(points: List[DataPoint]) -> pd.DataFrame:
    """Rows as a DataFrame with the renderer's column order."""
    return pd.DataFrame([asdict(p) for p in points], columns=DATAPOINT_COLUMNS)


def write_csv(points: List[DataPoint], path: Path) -> Path:
    """Write the rows to CSV, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    to_dataframe(points).to_csv(path, index=False)
    logger.info("Wrote %d rows to %s", len(points), path)
    return path
