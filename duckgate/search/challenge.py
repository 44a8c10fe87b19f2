"""CAPTCHA challenge detection for DuckDuckGo anomaly pages."""

from __future__ import annotations

from pathlib import PurePosixPath
from urllib.parse import urljoin, urlparse

from duckgate.search.document import Document, Node, parse_document
from duckgate.search.models import (
    ChallengeDescriptor,
    ChallengeFailedPage,
    ChallengePage,
    ChallengeResolvedPage,
    ParseOutcome,
)
from duckgate.search.results import extract_results

CHALLENGE_FORM_SELECTOR = "form#challenge-form"
FAILURE_FORM_SELECTOR = "form#challenge-form-failure, form.anomaly-modal__form--failure"
SUCCESS_SELECTOR = "#challenge-success, .anomaly-modal__success"

TITLE_SELECTOR = ".anomaly-modal__title"
INSTRUCTIONS_SELECTOR = ".anomaly-modal__instructions"
ERROR_SELECTOR = ".anomaly-modal__error, .anomaly-modal__instructions"
CHALLENGE_ERROR_SELECTOR = ".anomaly-modal__error"
TILE_IMAGE_SELECTOR = "img.anomaly-modal__image"
SUBMIT_SELECTOR = '[name="challenge-submit"], [type="submit"]'

CHECKBOX_PREFIX = "image-check_"

ChallengeOutcome = ChallengePage | ChallengeFailedPage | ChallengeResolvedPage


def classify_challenge(html: str | Document, base_url: str) -> ChallengeOutcome | None:
    """Detect challenge, challenge-failed and challenge-resolved pages.

    Checked in that priority order; ``None`` means the page is not a
    challenge page and should be handed to the result extractor.
    """
    doc = parse_document(html) if isinstance(html, str) else html

    form = doc.select_one(CHALLENGE_FORM_SELECTOR)
    if form is not None:
        return ChallengePage(
            _extract_challenge(doc, form, base_url),
            error=_joined_text(doc, CHALLENGE_ERROR_SELECTOR),
        )

    failure = doc.select_one(FAILURE_FORM_SELECTOR)
    if failure is not None:
        message = _joined_text(failure, ERROR_SELECTOR) or failure.text()
        retry = failure.attr("action")
        return ChallengeFailedPage(
            message=message or "The CAPTCHA answer was not accepted.",
            retry_url=urljoin(base_url, retry) if retry else "",
        )

    if doc.select_one(SUCCESS_SELECTOR) is not None:
        return ChallengeResolvedPage()

    return None


def classify_page(html: str, base_url: str) -> ParseOutcome:
    """Classify a search response; challenge markers win over results."""
    doc = parse_document(html)
    outcome = classify_challenge(doc, base_url)
    if outcome is not None:
        return outcome
    return extract_results(doc)


def checkbox_name_for(image_url: str) -> str:
    """Derive a tile's checkbox field name from its image filename stem."""
    stem = PurePosixPath(urlparse(image_url).path).stem
    return f"{CHECKBOX_PREFIX}{stem}"


def _extract_challenge(doc: Document, form: Node, base_url: str) -> ChallengeDescriptor:
    instructions = " ".join(
        part
        for part in (_joined_text(doc, TITLE_SELECTOR), _joined_text(doc, INSTRUCTIONS_SELECTOR))
        if part
    )

    image_urls: list[str] = []
    for img in form.select(TILE_IMAGE_SELECTOR):
        src = img.attr("src") or img.attr("data-src")
        if src:
            image_urls.append(urljoin(base_url, src))

    submit = form.select_one(SUBMIT_SELECTOR)
    action = form.attr("action")

    return ChallengeDescriptor(
        instructions=instructions,
        image_urls=tuple(image_urls),
        action_url=urljoin(base_url, action) if action else base_url,
        submit_name=submit.attr("name", "challenge-submit") if submit else "challenge-submit",
        submit_value=submit.attr("value") if submit else "",
        checkbox_names=tuple(checkbox_name_for(url) for url in image_urls),
    )


def _joined_text(node: Node, selector: str) -> str:
    return " ".join(text for text in (n.text() for n in node.select(selector)) if text)
