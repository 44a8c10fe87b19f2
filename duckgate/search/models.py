"""Data models for search results, pagination and CAPTCHA challenges."""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlencode

PUZZLE_TILE_COUNT = 9


@dataclass(slots=True)
class SearchResult:
    """One organic result, in document order."""

    title: str
    url: str
    snippet: str = ""


@dataclass(frozen=True, slots=True)
class PaginationToken:
    """Opaque form fields of the "next page" control, replayed verbatim."""

    fields: tuple[tuple[str, str], ...] = ()

    def __bool__(self) -> bool:
        return bool(self.fields)

    def encode(self) -> str:
        return urlencode(list(self.fields))


@dataclass(frozen=True, slots=True)
class ChallengeDescriptor:
    """A CAPTCHA challenge extracted from a results page."""

    instructions: str
    image_urls: tuple[str, ...]
    action_url: str
    submit_name: str
    submit_value: str
    checkbox_names: tuple[str, ...]

    def is_well_formed(self) -> bool:
        """Whether the tiles and checkboxes map 1:1 onto a 3x3 puzzle."""
        return (
            len(self.image_urls) == PUZZLE_TILE_COUNT
            and len(self.checkbox_names) == len(self.image_urls)
            and len(set(self.checkbox_names)) == len(self.checkbox_names)
        )

    def build_submission(self, indices: list[int]) -> list[tuple[str, str]]:
        """Form fields for a solve attempt; ``indices`` are 1-based."""
        form: list[tuple[str, str]] = [(self.submit_name, self.submit_value)]
        seen: set[int] = set()
        for index in indices:
            if not 1 <= index <= len(self.checkbox_names) or index in seen:
                continue
            seen.add(index)
            form.append((self.checkbox_names[index - 1], "1"))
        return form


@dataclass(slots=True)
class ResultsPage:
    results: list[SearchResult] = field(default_factory=list)
    token: PaginationToken = field(default_factory=PaginationToken)


@dataclass(slots=True)
class ChallengePage:
    challenge: ChallengeDescriptor
    error: str = ""  # set when a rejected answer came back with a new challenge


@dataclass(slots=True)
class ChallengeFailedPage:
    message: str
    retry_url: str = ""


@dataclass(slots=True)
class ChallengeResolvedPage:
    pass


@dataclass(slots=True)
class UnrecognizedPage:
    reason: str = "no results container"


ParseOutcome = (
    ResultsPage
    | ChallengePage
    | ChallengeFailedPage
    | ChallengeResolvedPage
    | UnrecognizedPage
)
