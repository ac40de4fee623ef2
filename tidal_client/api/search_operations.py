"""
Search Operations

Catalog search against TIDAL's top-hits endpoint.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import structlog

from ..models.catalog_models import ResourceType, SearchResults

logger = structlog.get_logger(__name__)

DEFAULT_SEARCH_TYPES = [
    ResourceType.ARTIST,
    ResourceType.ALBUM,
    ResourceType.TRACK,
    ResourceType.PLAYLIST,
]


@dataclass
class SearchQuery:
    """Search parameters; only ``query`` is required."""

    query: str
    offset: Optional[int] = None
    limit: Optional[int] = None
    include_contributions: Optional[bool] = None
    include_did_you_mean: Optional[bool] = None
    include_user_playlists: Optional[bool] = None
    supports_user_data: Optional[bool] = None
    search_types: Optional[List[ResourceType]] = None

    def types_param(self) -> str:
        types = self.search_types or DEFAULT_SEARCH_TYPES
        return ",".join(ResourceType(resource_type).search_type for resource_type in types)

    def to_params(self) -> Dict[str, Any]:
        """Query parameters for this search, without the request context."""
        params: Dict[str, Any] = {
            "query": self.query,
            "types": self.types_param(),
        }

        optional = {
            "offset": self.offset,
            "limit": self.limit,
            "includeContributions": self.include_contributions,
            "includeDidYouMean": self.include_did_you_mean,
            "includeUserPlaylists": self.include_user_playlists,
            "supportsUserData": self.supports_user_data,
        }
        params.update({key: value for key, value in optional.items() if value is not None})
        return params


class SearchOperations:
    """Search endpoint, mixed into TidalClient."""

    async def search(self, search: SearchQuery) -> SearchResults:
        """
        Search the catalog.

        Args:
            search: Query string plus optional paging and type filters

        Returns:
            Results grouped by resource type, plus the mixed top hits
        """
        if isinstance(search, str):
            search = SearchQuery(query=search)

        if search.offset is not None or search.limit is not None:
            self._validate_paging(
                search.offset if search.offset is not None else 0,
                search.limit if search.limit is not None else 1
            )

        params = self._context_params(**search.to_params())
        logger.debug("Searching catalog", query=search.query, types=params["types"])

        return await self._get_model(SearchResults, "search/top-hits", params)
