from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional


class BusinessDataStore(ABC):
    """
    Read-only access to business configuration and knowledge bases.

    Implementations must be safe to call repeatedly and should raise
    UpstreamError (or let their own exceptions escape) on failure; the
    knowledge base cache decides how to degrade.
    """

    @abstractmethod
    async def fetch_business_config(self, business_id: str) -> Optional[Dict[str, Any]]:
        """Return the raw config record for a business, or None if it does not exist."""
        pass

    @abstractmethod
    async def fetch_knowledge_base(self, business_id: str) -> List[Dict[str, Any]]:
        """Return raw knowledge entry records ordered by descending priority."""
        pass

    @abstractmethod
    async def list_businesses(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        pass
