"""Identifier registry: per-turn short IDs for citable entities."""

from groundline.registry.id_mapping import (
    RegistryState,
    build_id_mapping,
    build_registry,
)
from groundline.registry.schemas import (
    ContainerNode,
    DocumentNode,
    Entity,
    EntityTree,
    IdMapping,
    ItemNode,
    SubItemNode,
)

__all__ = [
    "ContainerNode",
    "DocumentNode",
    "Entity",
    "EntityTree",
    "IdMapping",
    "ItemNode",
    "RegistryState",
    "SubItemNode",
    "build_id_mapping",
    "build_registry",
]
