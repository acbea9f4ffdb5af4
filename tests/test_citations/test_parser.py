"""Tests for citation parsing and placeholder rewriting."""

from __future__ import annotations

import pytest

from groundline.citations import (
    ContainerCitation,
    DerivedPointCitation,
    DocumentCitation,
    GithubCitation,
    ItemCitation,
    MediaCitation,
    PortfolioCitation,
    SubItemCitation,
    WebCitation,
    citation_to_dict,
    parse_citations,
)
from groundline.constants import CitationType
from groundline.registry import IdMapping


def test_empty_text() -> None:
    result = parse_citations("")
    assert result.normalized_text == ""
    assert result.citations == []
    assert result.pending == ""


def test_text_without_citations_is_unchanged() -> None:
    text = "Plain answer with [brackets] and {braces}."
    result = parse_citations(text)
    assert result.normalized_text == text
    assert result.citations == []


def test_legacy_project_citation() -> None:
    mapping = IdMapping(reverse={"P1": "proj_abc"})
    result = parse_citations(
        'Built X [Project: "Built X"]{P1} more', mapping
    )
    assert result.normalized_text == "Built X {{citation:0}} more"
    assert result.citations == [
        ContainerCitation(
            display_text="Built X",
            short_id="P1",
            persistent_id="proj_abc",
            resolved=True,
        )
    ]


def test_compact_citations_resolve_by_id_shape(
    sample_mapping: IdMapping,
) -> None:
    text = (
        "[Search platform]{P1} [Ingestion]{B1} "
        "[Kafka consumers]{BR1} [About me]{PG1}"
    )
    result = parse_citations(text, sample_mapping)
    assert result.normalized_text == (
        "{{citation:0}} {{citation:1}} {{citation:2}} {{citation:3}}"
    )
    assert [type(c) for c in result.citations] == [
        ContainerCitation,
        ItemCitation,
        SubItemCitation,
        DocumentCitation,
    ]
    assert [c.persistent_id for c in result.citations] == [
        "proj_abc",
        "bp_1",
        "br_1",
        "page_intro",
    ]
    assert all(c.resolved for c in result.citations)


def test_placeholders_follow_text_order(sample_mapping: IdMapping) -> None:
    text = '[Billing]{P2} then [Project: "Search"]{P1}'
    result = parse_citations(text, sample_mapping)
    assert result.normalized_text == "{{citation:0}} then {{citation:1}}"
    assert [c.short_id for c in result.citations] == ["P2", "P1"]


def test_legacy_wins_over_overlapping_compact(
    sample_mapping: IdMapping,
) -> None:
    result = parse_citations('[Bullet: "Cut latency"]{B2}', sample_mapping)
    assert len(result.citations) == 1
    assert result.citations[0].display_text == "Cut latency"
    assert result.citations[0].persistent_id == "bp_2"


def test_legacy_variants() -> None:
    # missing closing quote, space before the brace, CJK brackets
    result = parse_citations(
        '[Page: "About me]{PG1} and 【Branch: "Backfill"】 {BR2}'
    )
    assert [c.type for c in result.citations] == [
        CitationType.DOCUMENT,
        CitationType.SUBITEM,
    ]
    assert result.citations[0].display_text == "About me"


def test_cjk_compact_brackets(sample_mapping: IdMapping) -> None:
    result = parse_citations("见【Billing】{P2}", sample_mapping)
    assert result.normalized_text == "见{{citation:0}}"
    assert result.citations[0].persistent_id == "proj_def"


def test_unknown_short_id_falls_back(sample_mapping: IdMapping) -> None:
    result = parse_citations("[Ghost project]{P9}", sample_mapping)
    citation = result.citations[0]
    assert citation.persistent_id == "P9"
    assert citation.resolved is False


def test_no_mapping_leaves_everything_unresolved() -> None:
    result = parse_citations("[Search platform]{P1}")
    assert result.citations[0].persistent_id == "P1"
    assert result.citations[0].resolved is False


@pytest.mark.parametrize(
    ("text", "cls", "persistent_id"),
    [
        ("[My site]{portfolio}", PortfolioCitation, "portfolio"),
        ("[Repo]{github:acme/search}", GithubCitation, "github:acme/search"),
        ("[Docs]{web}", WebCitation, "web"),
        ('[Web: "Docs"]{}', WebCitation, "web"),
    ],
)
def test_reserved_ids_always_resolve(
    text: str, cls: type, persistent_id: str
) -> None:
    citation = parse_citations(text).citations[0]
    assert isinstance(citation, cls)
    assert citation.persistent_id == persistent_id
    assert citation.resolved is True


def test_media_citation(sample_mapping: IdMapping) -> None:
    result = parse_citations(
        '【Audio: "Standup T95s"】 {PG2:standup.mp3}', sample_mapping
    )
    citation = result.citations[0]
    assert isinstance(citation, MediaCitation)
    assert citation.persistent_id == "page_audio"
    assert citation.resolved is True
    assert citation.media_file_ref == "standup.mp3"
    assert citation.seconds == 95


def test_compact_media_without_timestamp(sample_mapping: IdMapping) -> None:
    citation = parse_citations(
        "[Standup]{PG2:standup.mp3}", sample_mapping
    ).citations[0]
    assert isinstance(citation, MediaCitation)
    assert citation.seconds is None


def test_bare_echo_point_and_tool_marker() -> None:
    result = parse_citations("[Echo P3] some filler [unrelated_tool]")
    assert result.normalized_text == (
        "{{citation:0}} some filler [unrelated_tool]"
    )
    assert result.citations == [
        DerivedPointCitation(
            display_text="Echo P3",
            short_id="",
            persistent_id="",
            resolved=False,
            point_index=3,
        )
    ]


def test_compact_derived_point_resolves_document(
    sample_mapping: IdMapping,
) -> None:
    citation = parse_citations(
        "[Audio summary, point P4]{PG2}", sample_mapping
    ).citations[0]
    assert isinstance(citation, DerivedPointCitation)
    assert citation.display_text == "Echo P4"
    assert citation.point_index == 4
    assert citation.persistent_id == "page_audio"
    assert citation.resolved is True


def test_tool_marker_with_id_is_not_a_citation() -> None:
    result = parse_citations("[web_search]{web} result")
    assert result.citations == []
    assert result.normalized_text == "[web_search]{web} result"


def test_resume_label_infers_type(sample_mapping: IdMapping) -> None:
    result = parse_citations('[Resume: "Ingestion"]{B1}', sample_mapping)
    assert isinstance(result.citations[0], ItemCitation)
    assert result.citations[0].persistent_id == "bp_1"


def test_resume_label_with_unknown_id_is_left_alone() -> None:
    text = '[Resume: "Ingestion"]{zzz}'
    result = parse_citations(text)
    assert result.citations == []
    assert result.normalized_text == text


def test_unknown_legacy_label_is_left_alone() -> None:
    text = '[Note: "hello"]{zzz}'
    assert parse_citations(text).normalized_text == text


def test_stray_bracket_before_citation(sample_mapping: IdMapping) -> None:
    result = parse_citations(
        '[draft] then [Project: "Billing"]{P2}', sample_mapping
    )
    assert result.normalized_text == "[draft] then {{citation:0}}"
    assert result.citations[0].persistent_id == "proj_def"


def test_stray_bracket_before_compact_citation(
    sample_mapping: IdMapping,
) -> None:
    result = parse_citations("[draft [Built X]{P1}", sample_mapping)
    assert result.normalized_text == "[draft {{citation:0}}"
    assert result.citations[0].display_text == "Built X"
    assert result.citations[0].persistent_id == "proj_abc"


def test_placeholder_text_in_input_is_escaped(
    sample_mapping: IdMapping,
) -> None:
    result = parse_citations("x {{citation:0}} [A]{P1}", sample_mapping)
    assert result.normalized_text == "x {{citation\\:0}} {{citation:0}}"
    assert len(result.citations) == 1


def test_escaped_placeholder_text_gains_one_backslash() -> None:
    result = parse_citations("x {{citation\\:2}}")
    assert result.normalized_text == "x {{citation\\\\:2}}"
    assert result.citations == []


class TestPartial:
    def test_unfinished_legacy_is_held_back(self) -> None:
        result = parse_citations(
            'Built X [Project: "Bu', partial=True
        )
        assert result.normalized_text == "Built X "
        assert result.pending == '[Project: "Bu'
        assert result.citations == []

    def test_unfinished_brace_is_held_back(self) -> None:
        result = parse_citations("Done [Billing]{P", partial=True)
        assert result.normalized_text == "Done "
        assert result.pending == "[Billing]{P"

    def test_complete_citation_is_parsed(
        self, sample_mapping: IdMapping
    ) -> None:
        result = parse_citations(
            "Done [Billing]{P2} ok", sample_mapping, partial=True
        )
        assert result.pending == ""
        assert result.normalized_text == "Done {{citation:0}} ok"

    def test_closed_bracket_followed_by_text_is_not_pending(self) -> None:
        result = parse_citations("see [1] and more", partial=True)
        assert result.pending == ""
        assert result.normalized_text == "see [1] and more"

    def test_long_tail_is_not_pending(self) -> None:
        text = "start [" + "x" * 400
        result = parse_citations(text, partial=True)
        assert result.pending == ""
        assert result.normalized_text == text

    def test_growing_text_converges(self, sample_mapping: IdMapping) -> None:
        full = 'Intro [Project: "Billing"]{P2} end'
        for cut in range(len(full) + 1):
            result = parse_citations(
                full[:cut], sample_mapping, partial=True
            )
            if result.pending:
                assert full[:cut].endswith(result.pending)
        final = parse_citations(full, sample_mapping, partial=True)
        assert final.normalized_text == "Intro {{citation:0}} end"


def test_citation_to_dict_variant_fields() -> None:
    media = parse_citations("[Clip T5s]{PG2:a.mp3}").citations[0]
    data = citation_to_dict(media)
    assert data["type"] == "media"
    assert data["seconds"] == 5
    assert data["media_file_ref"] == "a.mp3"
    container = parse_citations("[X]{P1}").citations[0]
    assert "seconds" not in citation_to_dict(container)
