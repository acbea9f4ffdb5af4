"""Frozen citation value types.

``Citation`` is a tagged union over ``CitationType``: every variant
shares the common fields, and only the derived-point and media
variants carry extra metadata. ``resolved`` is False when the short id
was not found in the mapping and ``persistent_id`` fell back to the
short id itself.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import ClassVar, Literal

from groundline.constants import CitationType, IssueKind


@dataclass(frozen=True)
class _CitationBase:
    display_text: str
    short_id: str
    persistent_id: str
    resolved: bool


@dataclass(frozen=True)
class ContainerCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.CONTAINER]] = CitationType.CONTAINER


@dataclass(frozen=True)
class ItemCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.ITEM]] = CitationType.ITEM


@dataclass(frozen=True)
class SubItemCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.SUBITEM]] = CitationType.SUBITEM


@dataclass(frozen=True)
class DocumentCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.DOCUMENT]] = CitationType.DOCUMENT


@dataclass(frozen=True)
class WebCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.WEB]] = CitationType.WEB


@dataclass(frozen=True)
class GithubCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.GITHUB]] = CitationType.GITHUB


@dataclass(frozen=True)
class PortfolioCitation(_CitationBase):
    type: ClassVar[Literal[CitationType.PORTFOLIO]] = CitationType.PORTFOLIO


@dataclass(frozen=True)
class DerivedPointCitation(_CitationBase):
    """A point of an audio-derived summary, e.g. ``Echo P3``.

    ``short_id`` / ``persistent_id`` name the owning document.
    """

    type: ClassVar[Literal[CitationType.DERIVED_POINT]] = (
        CitationType.DERIVED_POINT
    )
    point_index: int | None = None


@dataclass(frozen=True)
class MediaCitation(_CitationBase):
    """A media file attached to a document, optionally at an offset."""

    type: ClassVar[Literal[CitationType.MEDIA]] = CitationType.MEDIA
    media_file_ref: str | None = None
    seconds: int | None = None


Citation = (
    ContainerCitation
    | ItemCitation
    | SubItemCitation
    | DocumentCitation
    | WebCitation
    | GithubCitation
    | PortfolioCitation
    | DerivedPointCitation
    | MediaCitation
)

CITATION_CLASSES: dict[CitationType, Callable[..., Citation]] = {
    CitationType.CONTAINER: ContainerCitation,
    CitationType.ITEM: ItemCitation,
    CitationType.SUBITEM: SubItemCitation,
    CitationType.DOCUMENT: DocumentCitation,
    CitationType.WEB: WebCitation,
    CitationType.GITHUB: GithubCitation,
    CitationType.PORTFOLIO: PortfolioCitation,
    CitationType.DERIVED_POINT: DerivedPointCitation,
    CitationType.MEDIA: MediaCitation,
}


def citation_to_dict(citation: Citation) -> dict[str, object]:
    """Plain-dict form for JSON output; variant fields only when set."""
    data: dict[str, object] = {
        "type": citation.type.value,
        "display_text": citation.display_text,
        "short_id": citation.short_id,
        "persistent_id": citation.persistent_id,
        "resolved": citation.resolved,
    }
    if isinstance(citation, DerivedPointCitation):
        data["point_index"] = citation.point_index
    elif isinstance(citation, MediaCitation):
        data["media_file_ref"] = citation.media_file_ref
        data["seconds"] = citation.seconds
    return data


@dataclass(frozen=True)
class ParseResult:
    """Text with citations replaced by ``{{citation:N}}`` placeholders.

    The Nth placeholder corresponds to ``citations[N]``. ``pending``
    holds a trailing, not yet complete citation fragment in partial
    mode; it is not part of ``normalized_text``. Placeholder-shaped
    text from the input appears escaped as ``{{citation\\:N}}``.
    """

    normalized_text: str
    citations: list[Citation] = field(default_factory=lambda: [])
    pending: str = ""


@dataclass(frozen=True)
class CitationIssue:
    """One structurally invalid or unmapped citation span."""

    kind: IssueKind
    span: str
    citation_id: str
    start: int
    end: int


@dataclass(frozen=True)
class MonitorSnapshot:
    total: int
    valid: int
    invalid: int
    accuracy: float  # percent, 100.0 when nothing was seen
    histogram: dict[str, int] = field(default_factory=lambda: {})
