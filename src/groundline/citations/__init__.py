"""Citation parsing, validation, monitoring and rendering."""

from groundline.citations.formatting import (
    enforce_response_length,
    format_citation,
    format_citations_block,
    format_response,
    post_process_response,
    render_segments,
    strip_tool_markers,
)
from groundline.citations.models import (
    Citation,
    CitationIssue,
    ContainerCitation,
    DerivedPointCitation,
    DocumentCitation,
    GithubCitation,
    ItemCitation,
    MediaCitation,
    MonitorSnapshot,
    ParseResult,
    PortfolioCitation,
    SubItemCitation,
    WebCitation,
    citation_to_dict,
)
from groundline.citations.monitor import CitationMonitor
from groundline.citations.parser import parse_citations
from groundline.citations.validator import (
    is_valid_citation,
    is_valid_citation_id,
    suggest_citation_fix,
    validate_all_citations,
    validate_and_clean_citations,
)

__all__ = [
    "Citation",
    "CitationIssue",
    "CitationMonitor",
    "ContainerCitation",
    "DerivedPointCitation",
    "DocumentCitation",
    "GithubCitation",
    "ItemCitation",
    "MediaCitation",
    "MonitorSnapshot",
    "ParseResult",
    "PortfolioCitation",
    "SubItemCitation",
    "WebCitation",
    "citation_to_dict",
    "enforce_response_length",
    "format_citation",
    "format_citations_block",
    "format_response",
    "is_valid_citation",
    "is_valid_citation_id",
    "parse_citations",
    "post_process_response",
    "render_segments",
    "strip_tool_markers",
    "suggest_citation_fix",
    "validate_all_citations",
    "validate_and_clean_citations",
]
