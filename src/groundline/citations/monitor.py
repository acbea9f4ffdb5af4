"""Streaming citation-quality accumulator.

Observational only: the monitor never changes the text it is fed.
Callers feed new deltas only; feeding the same text twice counts it
twice. One instance belongs to one stream.
"""

from __future__ import annotations

import logging
from collections import Counter

from groundline.citations.grammar import CITATION_SPAN_RE
from groundline.citations.models import CitationIssue, MonitorSnapshot
from groundline.citations.validator import validate_all_citations
from groundline.registry.schemas import IdMapping

logger = logging.getLogger(__name__)


class CitationMonitor:
    def __init__(self) -> None:
        self._total = 0
        self._valid = 0
        self._histogram: Counter[str] = Counter()

    def process_chunk(
        self,
        chunk: str,
        id_mapping: IdMapping | None = None,
    ) -> list[CitationIssue]:
        """Count the citation spans in ``chunk``; return its issues."""
        spans = len(CITATION_SPAN_RE.findall(chunk))
        if spans == 0:
            return []
        issues = validate_all_citations(chunk, id_mapping)
        self._total += spans
        self._valid += spans - len(issues)
        for issue in issues:
            self._histogram[issue.kind.value] += 1
            logger.debug(
                "event=citation_issue kind=%s id=%r",
                issue.kind.value,
                issue.citation_id,
            )
        return issues

    def snapshot(self) -> MonitorSnapshot:
        invalid = self._total - self._valid
        accuracy = (
            round(self._valid / self._total * 100, 2)
            if self._total
            else 100.0
        )
        return MonitorSnapshot(
            total=self._total,
            valid=self._valid,
            invalid=invalid,
            accuracy=accuracy,
            histogram=dict(self._histogram),
        )

    def reset(self) -> None:
        self._total = 0
        self._valid = 0
        self._histogram.clear()
