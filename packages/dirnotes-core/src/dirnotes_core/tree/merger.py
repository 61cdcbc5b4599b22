"""Merge a fresh directory scan with previously persisted annotations."""

from __future__ import annotations

from dirnotes_core.tree.models import AnnotationDocument, DirectoryNode


def merge_nodes(
    previous: list[DirectoryNode] | None,
    current: list[DirectoryNode] | None,
) -> list[DirectoryNode]:
    """Return *current*'s shape carrying over comments from *previous*.

    Nodes are matched by path identity only. A directory present only in
    *previous* is dropped along with its comment; a directory present only
    in *current* keeps whatever it came with. Inputs are not mutated.
    """
    if not current:
        return []
    if not previous:
        return [node.model_copy(deep=True) for node in current]

    by_key = {node.key: node for node in previous}
    merged: list[DirectoryNode] = []

    for node in current:
        old = by_key.get(node.key)
        if old is None:
            merged.append(node.model_copy(deep=True))
            continue

        if old.children and node.children:
            children = merge_nodes(old.children, node.children)
        else:
            # Current structure always wins for shape
            children = [child.model_copy(deep=True) for child in node.children]

        merged.append(
            DirectoryNode(path=node.path, comment=old.comment or "", children=children)
        )

    return merged


def merge_documents(
    previous: AnnotationDocument | None,
    current: list[DirectoryNode],
) -> AnnotationDocument:
    """Wrap :func:`merge_nodes` in a document, keeping the previous version tag."""
    if previous is None:
        return AnnotationDocument(directories=merge_nodes(None, current))
    return AnnotationDocument(
        version=previous.version,
        directories=merge_nodes(previous.directories, current),
    )
