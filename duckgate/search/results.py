"""Result extraction for DuckDuckGo HTML result pages."""

from __future__ import annotations

from duckgate.search.document import Document, parse_document
from duckgate.search.models import PaginationToken, ResultsPage, SearchResult, UnrecognizedPage

RESULTS_CONTAINER_SELECTOR = "#links, .results, .serp__results"
RESULT_ITEM_SELECTOR = ".result"
RESULT_LINK_SELECTOR = ".result__a"
RESULT_SNIPPET_SELECTOR = ".result__snippet"
NEXT_PAGE_SENTINEL = "Next"


def extract_results(html: str | Document) -> ResultsPage | UnrecognizedPage:
    """Parse a results page into ordered results and the next-page token.

    A page without a results container is reported as ``UnrecognizedPage``,
    which is distinct from a legitimate page with zero results.
    """
    doc = parse_document(html) if isinstance(html, str) else html

    items = doc.select(RESULT_ITEM_SELECTOR)
    if not items and doc.select_one(RESULTS_CONTAINER_SELECTOR) is None:
        return UnrecognizedPage("no results container found")

    results: list[SearchResult] = []
    for item in items:
        link = item.select_one(RESULT_LINK_SELECTOR)
        if link is None:
            continue
        title = link.text()
        if not title:
            continue
        snippet = item.select_one(RESULT_SNIPPET_SELECTOR)
        results.append(
            SearchResult(
                title=title,
                url=link.attr("href"),
                snippet=snippet.text() if snippet is not None else "",
            )
        )

    return ResultsPage(results=results, token=extract_next_token(doc))


def extract_next_token(doc: Document) -> PaginationToken:
    """Collect the named inputs of the form whose submit label is "Next"."""
    sentinel = f':scope > [value="{NEXT_PAGE_SENTINEL}"]'
    for form in doc.select("form"):
        if form.select_one(sentinel) is None:
            continue
        fields = tuple(
            (field.attr("name"), field.attr("value"))
            for field in form.select("input")
            if field.attr("name")
        )
        return PaginationToken(fields)
    return PaginationToken()
