from collections import OrderedDict
from dataclasses import dataclass
import logging
import time
from typing import Any, Callable, Dict, Optional

from supportwise.data_models import BusinessContext
from supportwise.datastore import BusinessDataStore

logger = logging.getLogger(__name__)


@dataclass
class _CacheRecord:
    context: BusinessContext
    loaded_at: float


class KnowledgeBaseCache:
    """
    Per-business TTL cache of BusinessContext, filled from a BusinessDataStore.

    A record older than the TTL is refreshed on the next access. If the refresh
    fails, the stale record keeps being served until a refresh succeeds or the
    cache is cleared. Datastore errors never propagate to callers.
    """

    def __init__(
        self,
        datastore: BusinessDataStore,
        ttl_seconds: float = 300.0,
        max_size: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.datastore = datastore
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._records: "OrderedDict[str, _CacheRecord]" = OrderedDict()
        self.hits = 0
        self.misses = 0
        logger.info(f"KnowledgeBaseCache initialized (ttl={ttl_seconds}s, max_size={max_size}).")

    def _is_fresh(self, record: _CacheRecord) -> bool:
        return (self._clock() - record.loaded_at) < self.ttl_seconds

    async def get(self, business_id: str) -> Optional[BusinessContext]:
        """Return the business context, or None when the business is unknown or was never loadable."""
        record = self._records.get(business_id)
        if record is not None and self._is_fresh(record):
            self.hits += 1
            logger.info(f"Cache hit for business '{business_id}'.")
            return record.context

        self.misses += 1
        if record is None:
            logger.info(f"Cache miss for business '{business_id}'. Fetching from datastore.")
        else:
            logger.info(f"Cache entry for business '{business_id}' expired. Refreshing from datastore.")

        try:
            context = await self._fetch(business_id)
        except Exception as e:
            if record is not None:
                logger.warning(f"Refresh failed for business '{business_id}' ({e}). Serving stale knowledge base.")
                return record.context
            logger.error(f"Failed to load business '{business_id}': {e}", exc_info=True)
            return None

        if context is None:
            if record is not None:
                logger.info(f"Business '{business_id}' no longer exists. Dropping cached copy.")
                self._records.pop(business_id, None)
            return None

        self._store(business_id, context)
        return context

    async def _fetch(self, business_id: str) -> Optional[BusinessContext]:
        config_record = await self.datastore.fetch_business_config(business_id)
        if config_record is None:
            return None
        kb_records = await self.datastore.fetch_knowledge_base(business_id)
        context = BusinessContext.from_records(business_id, config_record, kb_records)
        logger.info(f"Loaded business '{business_id}' with {len(context.knowledge_base)} knowledge entries.")
        return context

    def _store(self, business_id: str, context: BusinessContext) -> None:
        self._records.pop(business_id, None)
        self._records[business_id] = _CacheRecord(context=context, loaded_at=self._clock())
        while len(self._records) > self.max_size:
            evicted_id, _ = self._records.popitem(last=False)
            logger.info(f"Cache full ({self.max_size}). Evicted business '{evicted_id}'.")

    def clear(self, business_id: Optional[str] = None) -> None:
        if business_id:
            self._records.pop(business_id, None)
            logger.info(f"Cleared cache for business '{business_id}'.")
        else:
            self._records.clear()
            logger.info("Cleared entire knowledge base cache.")

    def __contains__(self, business_id: str) -> bool:
        return business_id in self._records

    def stats(self) -> Dict[str, Any]:
        return {
            "size": len(self._records),
            "max_size": self.max_size,
            "ttl_seconds": self.ttl_seconds,
            "hits": self.hits,
            "misses": self.misses,
        }
