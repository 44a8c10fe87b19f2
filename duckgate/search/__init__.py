"""DuckDuckGo HTML search session protocol."""

from duckgate.search.models import ChallengeDescriptor, PaginationToken, SearchResult

__all__ = ["ChallengeDescriptor", "PaginationToken", "SearchResult"]
