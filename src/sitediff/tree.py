"""
Folder trees of static resources and their cross-environment comparison.

Trees are keyed by relative path segments, never by absolute URL, because dev
and prod hosts differ. Nodes in one tree are located in the other by walking
the same segments down from the root.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import replace
from urllib.parse import urlsplit

from .config import STATIC_MARKER, TREE_DENYLIST
from .logger import get_logger
from .models import FileNode, FolderNode, StaticResource, TreeComparison, TreeNode, TreeNodeStatus
from .resources import normalized_key

logger = get_logger(__name__)

ROOT_NAME = "root"


def path_segments(url: str, marker: str | None = STATIC_MARKER) -> list[str]:
    """
    Relative path segments used to place a resource in a tree.

    Derived from the normalized key, so the tree and the resource
    reconciler agree on where a resource lives.
    """
    segments = [segment for segment in normalized_key(url, marker).split("/") if segment]
    if segments:
        return segments

    # No path at all ("https://host/"): the host stands in for the file name
    try:
        host = urlsplit(url).hostname
    except ValueError:
        host = None
    return [host or url]


def _is_denied(url: str, denylist: Iterable[str]) -> bool:
    denied = {entry.lower() for entry in denylist}
    if not denied:
        return False
    try:
        path = urlsplit(url).path
    except ValueError:
        path = url
    return any(segment.lower() in denied for segment in path.split("/"))


def build_tree(
    resources: Iterable[StaticResource],
    denylist: Iterable[str] = TREE_DENYLIST,
    marker: str | None = STATIC_MARKER,
) -> FolderNode:
    """
    Build a folder tree from a flat resource list.

    Every resource not excluded by ``denylist`` ends up in exactly one file
    node. Folders are shared between resources with a common prefix. When two
    resources resolve to the same path, the first owns the file node and the
    rest are recorded on it as duplicates.

    Args:
        resources: Resources of one environment
        denylist: Path segments that exclude a resource (case-insensitive)
        marker: Static-asset marker segment used to anchor paths

    Returns:
        Root folder node
    """
    denylist = tuple(denylist)
    root = FolderNode(name=ROOT_NAME, path="")

    for resource in resources:
        if _is_denied(resource.url, denylist):
            logger.debug("Skipping denylisted resource: %s", resource.url)
            continue

        segments = path_segments(resource.url, marker)
        current = root

        for depth, name in enumerate(segments[:-1], start=1):
            folder = current.child(name, "folder")
            if folder is None:
                folder = FolderNode(name=name, path="/".join(segments[:depth]))
                current.children.append(folder)
            current = folder

        file_name = segments[-1]
        existing = current.child(file_name, "file")
        if existing is not None:
            existing.duplicates.append(resource)
            continue

        current.children.append(
            FileNode(
                name=file_name,
                path="/".join(segments),
                resource=replace(resource, file_name=file_name, path="/".join(segments[:-1])),
            )
        )

    return root


def find_node(tree: FolderNode, segments: Sequence[str], index: int = 0) -> TreeNode | None:
    """
    Find a node by relative path segments.

    Intermediate segments must name folders and the last one a file. An
    empty segment list returns ``tree`` itself.
    """
    if index >= len(segments):
        return tree

    is_last = index == len(segments) - 1
    child = tree.child(segments[index], "file" if is_last else "folder")
    if child is None or is_last:
        return child
    return find_node(child, segments, index + 1)  # type: ignore[arg-type]


def find_folder(tree: FolderNode, segments: Sequence[str]) -> FolderNode | None:
    """Like :func:`find_node` but the last segment names a folder."""
    current: FolderNode | None = tree
    for name in segments:
        child = current.child(name, "folder") if current else None
        if child is None:
            return None
        current = child  # type: ignore[assignment]
    return current


def has_content_difference(node_a: TreeNode | None, node_b: TreeNode | None) -> bool:
    """
    True only when both files carry content and the contents differ.

    Content that was never fetched says nothing either way, so a missing
    side never counts as a difference.
    """
    if not isinstance(node_a, FileNode) or not isinstance(node_b, FileNode):
        return False

    content_a = node_a.resource.content
    content_b = node_b.resource.content
    if content_a is None or content_b is None:
        return False
    return content_a != content_b


def iter_nodes(tree: FolderNode, parent: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], TreeNode]]:
    """Yield (segments, node) for every descendant in pre-order."""
    for child in tree.children:
        segments = parent + (child.name,)
        yield segments, child
        if isinstance(child, FolderNode):
            yield from iter_nodes(child, segments)


def iter_files(tree: FolderNode) -> Iterator[FileNode]:
    for _, node in iter_nodes(tree):
        if isinstance(node, FileNode):
            yield node


def _annotate(tree: FolderNode, other: FolderNode, this_is_a: bool) -> list[TreeNodeStatus]:
    statuses = []
    for segments, node in iter_nodes(tree):
        if isinstance(node, FileNode):
            counterpart = find_node(other, segments)
        else:
            counterpart = find_folder(other, segments)

        differs = (
            has_content_difference(node, counterpart)
            if this_is_a
            else has_content_difference(counterpart, node)
        )
        statuses.append(
            TreeNodeStatus(
                path=node.path,
                kind=node.kind,
                exists_in_other=counterpart is not None,
                content_differs=differs,
            )
        )
    return statuses


def compare_trees(tree_a: FolderNode, tree_b: FolderNode) -> TreeComparison:
    """
    Annotate every node of both trees against the other tree.

    Args:
        tree_a: Tree of the first environment
        tree_b: Tree of the second environment

    Returns:
        TreeComparison with per-node status for each side
    """
    return TreeComparison(
        tree_a=tree_a,
        tree_b=tree_b,
        nodes_a=_annotate(tree_a, tree_b, this_is_a=True),
        nodes_b=_annotate(tree_b, tree_a, this_is_a=False),
    )
