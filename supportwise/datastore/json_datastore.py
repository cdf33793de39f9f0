from .datastore_interface import BusinessDataStore
from supportwise.exceptions import UpstreamError
import logging
import json
import os
from typing import Dict, List, Any, Optional

logger = logging.getLogger(__name__)


def _priority(record: Dict[str, Any]) -> int:
    try:
        return int(record.get("priority") or 0)
    except (TypeError, ValueError):
        return 0

# data/businesses.json at the project root; this file lives in supportwise/datastore/
DEFAULT_DATA_PATH = os.path.abspath(os.path.join(
    os.path.dirname(__file__), "..", "..", "data", "businesses.json"
))


class JsonBusinessDataStore(BusinessDataStore):
    """
    Business datastore backed by a single JSON document.

    The file is re-read on every fetch so a cache refresh picks up edits
    without a restart. Layout:

        {"businesses": {"<id>": {"config": {"business": {...}, "contact": {...}},
                                 "initial_message": "...",
                                 "system_message": null,
                                 "knowledge_base": [{"question", "answer", "category", "priority"}]}}}
    """

    def __init__(self, data_path: str = DEFAULT_DATA_PATH):
        self.data_path = data_path
        logger.info(f"JsonBusinessDataStore configured with data file {self.data_path}")

    def _load(self) -> Dict[str, Dict[str, Any]]:
        try:
            with open(self.data_path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except FileNotFoundError as e:
            logger.error(f"Business data file not found at {self.data_path}.")
            raise UpstreamError("Business data unavailable", details=str(e)) from e
        except json.JSONDecodeError as e:
            logger.error(f"Error decoding JSON from {self.data_path}: {e}")
            raise UpstreamError("Business data is corrupt", details=str(e)) from e

        businesses = document.get("businesses") if isinstance(document, dict) else None
        if not isinstance(businesses, dict):
            raise UpstreamError("Business data is corrupt", details="Missing 'businesses' mapping")
        return businesses

    async def fetch_business_config(self, business_id: str) -> Optional[Dict[str, Any]]:
        record = self._load().get(business_id)
        if record is None:
            logger.warning(f"Business '{business_id}' not found in {self.data_path}.")
            return None
        return {
            "config": record.get("config") or {},
            "initial_message": record.get("initial_message"),
            "system_message": record.get("system_message"),
        }

    async def fetch_knowledge_base(self, business_id: str) -> List[Dict[str, Any]]:
        record = self._load().get(business_id) or {}
        entries = [e for e in record.get("knowledge_base") or [] if isinstance(e, dict)]
        # sorted() is stable, so file order survives among equal priorities
        ordered = sorted(entries, key=lambda e: -_priority(e))
        logger.info(f"Loaded {len(ordered)} knowledge entries for business '{business_id}'.")
        return ordered

    async def list_businesses(self) -> List[Dict[str, Any]]:
        summaries = []
        for business_id, record in self._load().items():
            business = (record.get("config") or {}).get("business") or {}
            summaries.append({
                "business_id": business_id,
                "name": business.get("name", business_id),
                "type": business.get("type", "business"),
                "knowledge_base_count": len(record.get("knowledge_base") or []),
            })
        return summaries

    async def health_check(self) -> Dict[str, Any]:
        try:
            count = len(self._load())
            return {"status": "ok", "backend": "json", "businesses": count}
        except UpstreamError as e:
            return {"status": "error", "backend": "json", "error": e.message}
