"""
Dataflow listing cache for abs-mcp server.

This module owns the list of dataflows the ABS publishes:

    - TTL-based refresh (default: 24 hours); ABS has no change notification,
      so callers needing guaranteed freshness pass force_refresh=True
    - Persistence to a JSON file, loaded lazily on first use
    - Extraction of DataFlow records from the decoded SDMX-ML listing
    - Dataflow-scoped data queries delegated to ABSApiClient

Cache file format:
    {"lastUpdated": "2026-01-01T00:00:00+00:00",
     "flows": [{"id": ..., "agencyID": ..., "version": ..., "name": ...,
                "description": ..., "structure": {...}}]}

Example:
    >>> service = DataFlowService(cache_file="cache/dataflows.json")
    >>> flows = await service.get_dataflows()
    >>> data = await service.get_flow_data(
    ...     DataFlowService.format_dataflow_identifier(flows[0]))
"""
import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from ..config import get_settings
from ..models import DataFlow, DataFlowCache, DataQueryOptions, StructureRef
from .abs_client import ABSApiClient
from .xml_tree import as_list, text_of

logger = logging.getLogger(__name__)


class DataFlowService:
    """
    Cache-backed access to ABS dataflows.

    The in-memory snapshot moves through absent -> loaded -> refreshed, and is
    written to ``cache_file`` on every refresh. The read-or-refresh sequence
    runs under a lock so concurrent callers never trigger duplicate fetches or
    observe a half-replaced snapshot.
    """

    def __init__(
        self,
        cache_file: Optional[str] = None,
        refresh_interval_hours: Optional[float] = None,
        client: Optional[ABSApiClient] = None
    ):
        settings = get_settings()
        self.cache_file = cache_file or settings.cache_file
        if refresh_interval_hours is None:
            refresh_interval_hours = settings.refresh_interval_hours
        self.refresh_interval = timedelta(hours=refresh_interval_hours)
        self.client = client or ABSApiClient()
        self._cache: Optional[DataFlowCache] = None
        self._lock = asyncio.Lock()

        logger.info(
            f"DataFlowService initialized: cache_file={self.cache_file}, "
            f"refresh_interval_hours={refresh_interval_hours}"
        )

    @property
    def cache(self) -> Optional[DataFlowCache]:
        """The current in-memory snapshot, if any."""
        return self._cache

    async def get_dataflows(self, force_refresh: bool = False) -> list[DataFlow]:
        """
        Get the dataflow listing, refreshing it when stale.

        Args:
            force_refresh: Refetch even if the cached listing is still fresh

        Returns:
            Dataflows in upstream order

        Raises:
            RemoteError: If a refresh was needed and the ABS request failed
            OSError, ValueError, KeyError: If the cache file cannot be read or written
        """
        logger.debug(f"Getting dataflows: force_refresh={force_refresh}")

        async with self._lock:
            if self._cache is None:
                logger.info("Cache not initialized, attempting to load from file")
                self._cache = self._load_from_disk()

            if force_refresh or not self._is_fresh():
                logger.info("Cache stale or refresh forced, fetching dataflows")
                cache = DataFlowCache.create(await self._fetch_dataflows())
                self._save_to_disk(cache)
                self._cache = cache
                return list(cache.flows)

            logger.debug(
                f"Returning {len(self._cache.flows)} cached dataflows "
                f"(age: {self._cache.age_hours:.1f}h)"
            )
            return list(self._cache.flows)

    async def get_flow_data(
        self,
        flow_id: str,
        data_key: str = "all",
        options: Optional[DataQueryOptions] = None
    ) -> Union[str, dict[str, Any]]:
        """Fetch observation data for a dataflow. Observation data is never cached."""
        logger.info(f"Getting flow data: flow={flow_id}, key={data_key}")
        return await self.client.get_observation_data(flow_id, data_key, options)

    async def find_dataflow(self, flow_id: str, agency_id: Optional[str] = None) -> Optional[DataFlow]:
        """
        Look up a dataflow in the listing.

        ``flow_id`` may be a bare id or an ``agencyID,id,version`` identifier.
        """
        version = None
        if "," in flow_id:
            parts = [part.strip() for part in flow_id.split(",")]
            if len(parts) == 3:
                agency_id, flow_id, version = parts
            elif len(parts) == 2:
                agency_id, flow_id = parts

        for flow in await self.get_dataflows():
            if flow.id != flow_id:
                continue
            if agency_id and flow.agency_id != agency_id:
                continue
            if version and flow.version != version:
                continue
            return flow
        return None

    async def search_dataflows(self, query: str) -> list[DataFlow]:
        """Case-insensitive substring search over dataflow id, name and description."""
        needle = query.strip().lower()
        flows = await self.get_dataflows()
        if not needle:
            return flows
        return [
            flow for flow in flows
            if needle in flow.id.lower()
            or needle in flow.name.lower()
            or needle in flow.description.lower()
        ]

    @staticmethod
    def format_dataflow_identifier(flow: DataFlow) -> str:
        """
        Format the ``agencyID,id,version`` token addressing ``flow`` in data queries.

        Components are not escaped; a component containing a comma would make
        the token ambiguous upstream.
        """
        return flow.identifier

    def get_stats(self) -> dict:
        """Get cache statistics."""
        cache = self._cache
        return {
            'loaded': cache is not None,
            'count': len(cache.flows) if cache else 0,
            'last_updated': cache.last_updated.isoformat() if cache else None,
            'age_hours': round(cache.age_hours, 2) if cache else None,
            'expired': not self._is_fresh(),
            'refresh_interval_hours': self.refresh_interval.total_seconds() / 3600,
            'cache_file': self.cache_file,
            'file_exists': os.path.exists(self.cache_file)
        }

    def _is_fresh(self) -> bool:
        if self._cache is None:
            return False
        age = datetime.now(timezone.utc) - self._cache.last_updated
        is_fresh = age < self.refresh_interval
        logger.debug(f"Cache age {age}, refresh interval {self.refresh_interval}, fresh={is_fresh}")
        return is_fresh

    async def _fetch_dataflows(self) -> list[DataFlow]:
        tree = await self.client.list_dataflow_structures()
        flows = extract_dataflows(tree)
        logger.info(f"Fetched {len(flows)} dataflows from ABS")
        return flows

    def _load_from_disk(self) -> Optional[DataFlowCache]:
        """Load the snapshot from disk; a missing file means no cache."""
        if not os.path.exists(self.cache_file):
            logger.info(f"No cache file found at {self.cache_file}")
            return None

        with open(self.cache_file, 'r', encoding='utf-8') as f:
            content = json.load(f)

        cache = DataFlowCache.from_dict(content)
        logger.info(
            f"Loaded {len(cache.flows)} dataflows from cache "
            f"(last updated {cache.last_updated.isoformat()})"
        )
        return cache

    def _save_to_disk(self, cache: DataFlowCache) -> None:
        """
        Write the snapshot to disk.

        The document is written to a temporary file beside the cache file and
        moved into place, so a failed write leaves the previous file intact.
        """
        directory = os.path.dirname(os.path.abspath(self.cache_file))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".dataflows-", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(cache.to_dict(), f, indent=2)
            os.replace(tmp_path, self.cache_file)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"Saved {len(cache.flows)} dataflows to {self.cache_file}")


def extract_dataflows(tree: Any) -> list[DataFlow]:
    """
    Extract DataFlow records from a decoded dataflow listing.

    The listing lives at Structure/Structures/Dataflows/Dataflow in SDMX-ML
    2.1 (Structure/Dataflows/Dataflow is accepted too). A missing listing
    yields no dataflows. A lone Dataflow element decodes to a bare mapping
    and is treated as a one-element list.
    """
    dataflows = _find_dataflows_element(tree)
    if dataflows is None:
        logger.info("No Dataflows element in the ABS response")
        return []

    flows = []
    for element in as_list(dataflows.get("Dataflow")):
        flow = _to_dataflow(element)
        if flow is not None:
            flows.append(flow)
    return flows


def _find_dataflows_element(tree: Any) -> Optional[dict]:
    if not isinstance(tree, dict):
        return None
    structure = tree.get("Structure")
    if not isinstance(structure, dict):
        return None

    structures = structure.get("Structures")
    if isinstance(structures, dict) and isinstance(structures.get("Dataflows"), dict):
        return structures["Dataflows"]
    if isinstance(structure.get("Dataflows"), dict):
        return structure["Dataflows"]
    return None


def _to_dataflow(element: Any) -> Optional[DataFlow]:
    if not isinstance(element, dict) or not element.get("id"):
        logger.warning(f"Skipping dataflow element without an id: {element!r}")
        return None

    structure = None
    ref = element.get("Structure")
    ref = ref.get("Ref") if isinstance(ref, dict) else None
    if isinstance(ref, dict):
        structure = StructureRef(
            id=ref.get("id", ""),
            version=ref.get("version", ""),
            agency_id=ref.get("agencyID", "")
        )

    return DataFlow(
        id=element["id"],
        agency_id=element.get("agencyID", ""),
        version=element.get("version", ""),
        name=text_of(element.get("Name")),
        description=text_of(element.get("Description")),
        structure=structure
    )
