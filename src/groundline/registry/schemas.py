"""Pydantic models for the entity snapshot and the short-ID mapping."""

from __future__ import annotations

from pydantic import BaseModel, Field

from groundline.constants import EntityKind


class Entity(BaseModel):
    """A flat content entity as supplied by the entity source."""

    persistent_id: str | None
    kind: EntityKind
    parent_id: str | None = None
    text: str = ""


class SubItemNode(BaseModel):
    id: str | None
    text: str = ""


class ItemNode(BaseModel):
    id: str | None
    text: str = ""
    # None means "not loaded here"; see EntityTree.subitems_by_item
    subitems: list[SubItemNode] | None = None


class ContainerNode(BaseModel):
    id: str | None
    text: str = ""
    items: list[ItemNode] | None = None


class DocumentNode(BaseModel):
    id: str | None
    text: str = ""


class EntityTree(BaseModel):
    """Ordered snapshot of one content tree (e.g. one resume).

    Children can be nested inline or supplied through the side
    lookups when they are loaded separately from their parents.
    Inline children win when both are present.
    """

    documents: list[DocumentNode] = Field(
        default_factory=lambda: list[DocumentNode]()
    )
    containers: list[ContainerNode] = Field(
        default_factory=lambda: list[ContainerNode]()
    )
    items_by_container: dict[str, list[ItemNode]] = Field(
        default_factory=lambda: dict[str, list[ItemNode]]()
    )
    subitems_by_item: dict[str, list[SubItemNode]] = Field(
        default_factory=lambda: dict[str, list[SubItemNode]]()
    )

    def items_of(self, container: ContainerNode) -> list[ItemNode]:
        if container.items is not None:
            return container.items
        if container.id is None:
            return []
        return self.items_by_container.get(container.id, [])

    def subitems_of(self, item: ItemNode) -> list[SubItemNode]:
        if item.subitems is not None:
            return item.subitems
        if item.id is None:
            return []
        return self.subitems_by_item.get(item.id, [])

    @classmethod
    def from_entities(cls, entities: list[Entity]) -> EntityTree:
        """Assemble a tree from flat entities, keeping input order.

        Items and sub-items attach to their parent by ``parent_id``;
        orphans (unknown parent) are dropped. Derived points are not
        part of the citable tree and are ignored.
        """
        tree = cls()
        items: dict[str, list[ItemNode]] = {}
        subitems: dict[str, list[SubItemNode]] = {}

        for entity in entities:
            if entity.kind == EntityKind.DOCUMENT:
                tree.documents.append(
                    DocumentNode(id=entity.persistent_id, text=entity.text)
                )
            elif entity.kind == EntityKind.CONTAINER:
                tree.containers.append(
                    ContainerNode(
                        id=entity.persistent_id, text=entity.text
                    )
                )
            elif entity.kind == EntityKind.ITEM and entity.parent_id:
                items.setdefault(entity.parent_id, []).append(
                    ItemNode(id=entity.persistent_id, text=entity.text)
                )
            elif entity.kind == EntityKind.SUBITEM and entity.parent_id:
                subitems.setdefault(entity.parent_id, []).append(
                    SubItemNode(
                        id=entity.persistent_id, text=entity.text
                    )
                )

        tree.items_by_container = items
        tree.subitems_by_item = subitems
        return tree


class IdMapping(BaseModel):
    """Bidirectional persistent-ID ↔ short-ID table for one turn."""

    forward: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )
    reverse: dict[str, str] = Field(
        default_factory=lambda: dict[str, str]()
    )

    def short_id_for(self, persistent_id: str) -> str | None:
        return self.forward.get(persistent_id)

    def persistent_id_for(self, short_id: str) -> str | None:
        return self.reverse.get(short_id)

    def __contains__(self, short_id: object) -> bool:
        return short_id in self.reverse

    def __len__(self) -> int:
        return len(self.reverse)
