from conftest import (
    SEARCH_URL,
    TILE_STEMS,
    challenge_html,
    failure_html,
    results_html,
    success_html,
    tile_url,
)

from duckgate.search.challenge import checkbox_name_for, classify_challenge, classify_page
from duckgate.search.models import (
    ChallengeDescriptor,
    ChallengeFailedPage,
    ChallengePage,
    ChallengeResolvedPage,
    ResultsPage,
    UnrecognizedPage,
)


def test_challenge_page_yields_nine_order_matched_tiles() -> None:
    outcome = classify_challenge(challenge_html(), SEARCH_URL)

    assert isinstance(outcome, ChallengePage)
    challenge = outcome.challenge
    assert challenge.image_urls == tuple(tile_url(stem) for stem in TILE_STEMS)
    assert challenge.checkbox_names == tuple(f"image-check_{stem}" for stem in TILE_STEMS)
    assert challenge.is_well_formed()


def test_challenge_form_fields_are_extracted() -> None:
    outcome = classify_challenge(challenge_html(submit_value="xyz"), SEARCH_URL)

    assert isinstance(outcome, ChallengePage)
    challenge = outcome.challenge
    assert challenge.action_url == "https://duckduckgo.com/anomaly.js?sv=html&cc=botnet"
    assert challenge.submit_name == "challenge-submit"
    assert challenge.submit_value == "xyz"
    assert "Select all squares containing a duck" in challenge.instructions
    assert outcome.error == ""


def test_challenge_page_keeps_rejection_message() -> None:
    outcome = classify_challenge(challenge_html(error="Incorrect, please try again."), SEARCH_URL)

    assert isinstance(outcome, ChallengePage)
    assert outcome.error == "Incorrect, please try again."
    assert outcome.challenge.is_well_formed()
    assert "Incorrect" not in outcome.challenge.instructions


def test_failure_form_reports_message_and_retry_url() -> None:
    outcome = classify_challenge(failure_html("Wrong tiles."), SEARCH_URL)

    assert isinstance(outcome, ChallengeFailedPage)
    assert outcome.message == "Wrong tiles."
    assert outcome.retry_url == "https://html.duckduckgo.com/html/?retry=1"


def test_success_marker_is_resolved() -> None:
    assert isinstance(classify_challenge(success_html(), SEARCH_URL), ChallengeResolvedPage)


def test_results_page_is_not_a_challenge() -> None:
    html = results_html([("A", "https://a.example/", "a-desc")])

    assert classify_challenge(html, SEARCH_URL) is None
    assert isinstance(classify_page(html, SEARCH_URL), ResultsPage)


def test_challenge_wins_over_other_markers() -> None:
    html = challenge_html().replace("</body>", f"{success_html()}</body>")

    assert isinstance(classify_page(html, SEARCH_URL), ChallengePage)


def test_unknown_page_is_unrecognized() -> None:
    assert isinstance(classify_page("<html><body>blocked</body></html>", SEARCH_URL), UnrecognizedPage)


def test_checkbox_name_uses_filename_stem() -> None:
    assert checkbox_name_for("https://x.example/a/b/7f3e.jpg?v=2") == "image-check_7f3e"


def test_duplicate_filenames_are_not_well_formed() -> None:
    stems = ["a", "b", "c", "d", "e", "f", "g", "h", "a"]
    outcome = classify_challenge(challenge_html(stems), SEARCH_URL)

    assert isinstance(outcome, ChallengePage)
    assert not outcome.challenge.is_well_formed()


def test_tile_count_mismatch_is_not_well_formed() -> None:
    outcome = classify_challenge(challenge_html(TILE_STEMS[:8]), SEARCH_URL)

    assert isinstance(outcome, ChallengePage)
    assert not outcome.challenge.is_well_formed()


def test_build_submission_checks_only_valid_positions() -> None:
    challenge = ChallengeDescriptor(
        instructions="",
        image_urls=tuple(f"https://x/{i}.jpg" for i in range(1, 10)),
        action_url="https://x/anomaly",
        submit_name="challenge-submit",
        submit_value="tok",
        checkbox_names=tuple(f"f{i}" for i in range(1, 10)),
    )

    form = challenge.build_submission([3, 7, 0, 10, -1, 3])

    assert form == [("challenge-submit", "tok"), ("f3", "1"), ("f7", "1")]
