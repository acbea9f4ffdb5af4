"""Short-ID assignment for citable entities.

Short IDs (``P1``, ``B3``, ``BR2``, ``PG1``) are what the assistant
writes inside citation markers. They are rebuilt from a fresh snapshot
every turn and mean nothing outside the RegistryState that produced
them. The same function is used to prompt the model and to resolve its
citations, so both sides always agree on the numbering.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from groundline.constants import SHORT_ID_PREFIXES, EntityKind
from groundline.registry.schemas import EntityTree, IdMapping

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistryState:
    """Per-turn registry value, threaded explicitly to the parser."""

    mapping: IdMapping
    counts: dict[EntityKind, int] = field(
        default_factory=lambda: dict[EntityKind, int]()
    )


class _Assigner:
    """Per-kind counters; only successful assignments advance them."""

    def __init__(self) -> None:
        self.mapping = IdMapping()
        self.counts: dict[EntityKind, int] = {
            kind: 0 for kind in SHORT_ID_PREFIXES
        }

    def assign(self, kind: EntityKind, persistent_id: str | None) -> bool:
        if not persistent_id:
            return False
        if persistent_id in self.mapping.forward:
            logger.warning(
                "event=duplicate_persistent_id kind=%s id=%s action=skip",
                kind,
                persistent_id,
            )
            return False
        self.counts[kind] += 1
        short_id = f"{SHORT_ID_PREFIXES[kind]}{self.counts[kind]}"
        self.mapping.forward[persistent_id] = short_id
        self.mapping.reverse[short_id] = persistent_id
        return True


def build_registry(tree: EntityTree) -> RegistryState:
    """Walk the snapshot and number every citable entity.

    Order: documents (own counter), then each container followed by
    its items and each item's sub-items. Entities without an id are
    skipped together with their subtree.
    """
    assigner = _Assigner()

    for document in tree.documents:
        assigner.assign(EntityKind.DOCUMENT, document.id)

    for container in tree.containers:
        if not assigner.assign(EntityKind.CONTAINER, container.id):
            continue
        for item in tree.items_of(container):
            if not assigner.assign(EntityKind.ITEM, item.id):
                continue
            for subitem in tree.subitems_of(item):
                assigner.assign(EntityKind.SUBITEM, subitem.id)

    logger.debug(
        "event=registry_built documents=%d containers=%d items=%d"
        " subitems=%d",
        assigner.counts[EntityKind.DOCUMENT],
        assigner.counts[EntityKind.CONTAINER],
        assigner.counts[EntityKind.ITEM],
        assigner.counts[EntityKind.SUBITEM],
    )
    return RegistryState(
        mapping=assigner.mapping, counts=dict(assigner.counts)
    )


def build_id_mapping(tree: EntityTree) -> IdMapping:
    """Convenience wrapper returning only the mapping."""
    return build_registry(tree).mapping
