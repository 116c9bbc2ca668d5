"""
File tree — builds the nested explorer tree from the flat ``parent_id`` list
stored on each file, with explicit cycle detection.
"""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


class TreeCycleError(ValueError):
    """Raised when parent links loop back on themselves."""

    def __init__(self, cycle: list[int]):
        self.cycle = cycle
        super().__init__(f"Folder cycle detected: {' -> '.join(str(i) for i in cycle)}")


@dataclass
class TreeNode:
    file: object
    children: list["TreeNode"] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = self.file.to_dict(include_content=False)
        data["children"] = [child.to_dict() for child in self.children]
        return data


def _sort_key(file):
    return (not file.is_folder, file.name.lower())


def find_cycle(files) -> list[int] | None:
    """Return the ids along the first parent cycle found, or None."""
    parent_of = {f.id: f.parent_id for f in files}
    done: set[int] = set()
    for start in parent_of:
        if start in done:
            continue
        trail: list[int] = []
        on_trail: set[int] = set()
        node = start
        while node is not None and node in parent_of and node not in done:
            if node in on_trail:
                return trail[trail.index(node):] + [node]
            trail.append(node)
            on_trail.add(node)
            node = parent_of[node]
        done.update(trail)
    return None


def would_create_cycle(files, file_id: int, new_parent_id: int | None) -> bool:
    """True when re-parenting *file_id* under *new_parent_id* closes a loop."""
    if new_parent_id is None:
        return False
    parent_of = {f.id: f.parent_id for f in files}
    seen: set[int] = set()
    node = new_parent_id
    while node is not None and node not in seen:
        if node == file_id:
            return True
        seen.add(node)
        node = parent_of.get(node)
    return node is not None


def build_file_tree(files) -> list[TreeNode]:
    """
    Nest *files* by ``parent_id``.  Folders sort before notes, then by
    case-insensitive name.  Files whose parent is not in *files* (for example
    after a search filter) are promoted to roots.
    """
    files = list(files)
    cycle = find_cycle(files)
    if cycle:
        raise TreeCycleError(cycle)

    ids = {f.id for f in files}
    children: dict[int, list] = {}
    roots = []
    for f in files:
        if f.parent_id is not None and f.parent_id in ids:
            children.setdefault(f.parent_id, []).append(f)
        else:
            if f.parent_id is not None:
                logger.debug("Promoting orphan %s (parent %s not listed)", f.id, f.parent_id)
            roots.append(f)

    def build_node(file) -> TreeNode:
        kids = sorted(children.get(file.id, []), key=_sort_key)
        return TreeNode(file=file, children=[build_node(k) for k in kids])

    return [build_node(f) for f in sorted(roots, key=_sort_key)]


def filter_files(files, query: str) -> list:
    """Case-insensitive substring search on file names."""
    if not query:
        return list(files)
    needle = query.lower()
    return [f for f in files if needle in f.name.lower()]
