"""Tests for segment rendering and response post-processing."""

from __future__ import annotations

from groundline.citations import (
    ContainerCitation,
    DerivedPointCitation,
    MediaCitation,
    enforce_response_length,
    format_citation,
    format_citations_block,
    format_response,
    parse_citations,
    post_process_response,
    render_segments,
    strip_tool_markers,
)
from groundline.registry import IdMapping

CONTAINER = ContainerCitation(
    display_text="Built X",
    short_id="P1",
    persistent_id="proj_abc",
    resolved=True,
)


class TestRenderSegments:
    def test_interleaves_text_and_citations(
        self, sample_mapping: IdMapping
    ) -> None:
        result = parse_citations(
            "Led [Search]{P1} and [Billing]{P2}.", sample_mapping
        )
        segments = render_segments(
            result.normalized_text, result.citations
        )
        assert segments == [
            "Led ",
            result.citations[0],
            " and ",
            result.citations[1],
            ".",
        ]

    def test_out_of_range_placeholder_dropped(self) -> None:
        segments = render_segments(
            "A {{citation:0}} B {{citation:5}}", [CONTAINER]
        )
        assert segments == ["A ", CONTAINER, " B "]

    def test_literal_placeholder_text_comes_back_verbatim(
        self, sample_mapping: IdMapping
    ) -> None:
        text = "see {{citation:0}} and {{citation\\:1}} then [A]{P1}"
        result = parse_citations(text, sample_mapping)
        segments = render_segments(
            result.normalized_text, result.citations
        )
        assert segments == [
            "see {{citation:0}} and {{citation\\:1}} then ",
            result.citations[0],
        ]

    def test_plain_text(self) -> None:
        assert render_segments("just text", []) == ["just text"]
        assert render_segments("", []) == []


def test_strip_tool_markers() -> None:
    assert (
        strip_tool_markers("x [web_search] y [tool_lookup] z")
        == "x  y  z"
    )


def test_post_process_keeps_answer_after_marker() -> None:
    assert (
        post_process_response("Thinking ------ AS: Final answer")
        == "Thinking Final answer"
    )


def test_post_process_drops_trailing_note() -> None:
    assert (
        post_process_response("Answer.\n----- No space or new lines")
        == "Answer.\n"
    )


def test_format_response_normalizes_bullets() -> None:
    text = "- one\n* two\n\n\n\nend [web_search]"
    assert format_response(text) == "• one\n• two\n\nend"


class TestEnforceResponseLength:
    def test_short_text_unchanged(self) -> None:
        assert enforce_response_length("a b c", max_words=5) == "a b c"

    def test_ends_at_sentence(self) -> None:
        text = "One two three. Four five six seven"
        assert enforce_response_length(text, max_words=5) == (
            "One two three."
        )

    def test_completes_cut_citation(self) -> None:
        text = "Alpha beta [Built X]{P1} gamma"
        assert enforce_response_length(text, max_words=3) == (
            "Alpha beta [Built X]{P1}"
        )

    def test_drops_unclosable_citation(self) -> None:
        text = "Done. Then [" + "word " * 30 + "]{P1}"
        assert enforce_response_length(text, max_words=4) == "Done."

    def test_ellipsis_without_sentence_end(self) -> None:
        assert enforce_response_length("a b c d", max_words=2) == "a b..."


class TestFormatCitation:
    def test_resolved_container(self) -> None:
        assert format_citation(CONTAINER) == (
            "Built X [P1] (container, proj_abc)"
        )

    def test_unresolved(self) -> None:
        citation = ContainerCitation(
            display_text="Ghost",
            short_id="P9",
            persistent_id="P9",
            resolved=False,
        )
        assert format_citation(citation) == (
            "Ghost [P9] (container, unresolved)"
        )

    def test_media(self) -> None:
        citation = MediaCitation(
            display_text="Standup",
            short_id="PG2:standup.mp3",
            persistent_id="page_audio",
            resolved=True,
            media_file_ref="standup.mp3",
            seconds=95,
        )
        assert format_citation(citation) == (
            "Standup [PG2:standup.mp3] "
            "(media, standup.mp3, at 95s, page_audio)"
        )

    def test_bare_derived_point(self) -> None:
        citation = DerivedPointCitation(
            display_text="Echo P3",
            short_id="",
            persistent_id="",
            resolved=False,
            point_index=3,
        )
        assert format_citation(citation) == (
            "Echo P3 [-] (derived_point, point 3, unresolved)"
        )


def test_format_citations_block() -> None:
    assert format_citations_block([]) == ""
    assert format_citations_block([CONTAINER]) == (
        "**Sources:**\n1. Built X [P1] (container, proj_abc)"
    )
