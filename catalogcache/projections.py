"""Read projections over repository output. Pure functions, no I/O."""

from typing import Iterable, List, Optional, TypeVar

T = TypeVar("T")


def by_workspace(
    entities: Iterable[T],
    workspace_id: Optional[str],
    attribute: str = "workspace_id"
) -> List[T]:
    """Keep entities that are global (no workspace tag) or tagged with workspace_id.

    Args:
        entities: Components, products or suppliers
        workspace_id: Active workspace; None keeps only global entities
        attribute: Name of the workspace tag attribute

    Returns:
        Matching entities in their original order
    """
    return [
        entity for entity in entities
        if getattr(entity, attribute, None) in (None, "", workspace_id)
    ]


def by_search_text(components: Iterable[T], query: Optional[str]) -> List[T]:
    """Case-insensitive substring match on name. A blank query keeps everything."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(components)
    return [c for c in components if needle in (getattr(c, "name", "") or "").lower()]
