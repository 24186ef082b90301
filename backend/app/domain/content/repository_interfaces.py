"""
Content Source Interfaces

Abstract interface for the authoritative data sources the warming
scheduler reads from. Every method returns a JSON-serializable value, or
None when there is nothing worth caching. Implementations must be safe to
call repeatedly.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class ContentSource(ABC):
    """
    Read-only access to categories, tags, articles, concerts and users.
    """

    @abstractmethod
    async def list_categories(self) -> Optional[List[Dict[str, Any]]]:
        """List every category."""
        pass

    @abstractmethod
    async def popular_tags(self, limit: int) -> Optional[List[Dict[str, Any]]]:
        """List the most used tags."""
        pass

    @abstractmethod
    async def popular_articles(
        self, page: int, limit: int, days: int
    ) -> Optional[Dict[str, Any]]:
        """
        Get a page of the most liked articles.

        Args:
            page: 1-based page number
            limit: Page size
            days: Look-back window in days

        Returns:
            Paginated payload, or None
        """
        pass

    @abstractmethod
    async def upcoming_concerts(self, page: int, limit: int) -> Optional[Dict[str, Any]]:
        """Get a page of concerts that have not started, soonest first."""
        pass

    @abstractmethod
    async def popular_concerts(self, page: int, limit: int) -> Optional[Dict[str, Any]]:
        """Get a page of upcoming or ongoing concerts ordered by likes."""
        pass

    @abstractmethod
    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user's public profile."""
        pass

    @abstractmethod
    async def get_user_stats(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user's activity counters."""
        pass
