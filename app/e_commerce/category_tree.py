from collections import defaultdict
from typing import Dict, Iterable, List
import logging

from .models import ROOT_PARENT_ID
from .schemas import CategoryTreeNode

logger = logging.getLogger(__name__)


def build_category_tree(
    categories: Iterable, include_orphans: bool = False, hidden_ids: Iterable[int] = ()
) -> List[CategoryTreeNode]:
    """
    Assemble flat category records into a parent -> children hierarchy.

    Args:
        categories: category records already ordered by (sort, category_id)
        include_orphans: attach categories that cannot be reached from the root
            (missing parent or a parent cycle) as extra roots instead of dropping them
        hidden_ids: categories left out of the tree together with their whole subtree

    Returns:
        List[CategoryTreeNode]: the root nodes (parent_id == 0), sibling order preserved
    """
    records = list(categories)
    hidden = set(hidden_ids)

    # One pass: parent_id -> children in input order
    children_index: Dict[int, list] = defaultdict(list)
    for record in records:
        children_index[record.parent_id].append(record)

    visited = set()
    pruned = []

    def prune(record):
        visited.add(record.category_id)
        pruned.append(record.category_id)
        for child in children_index.get(record.category_id, []):
            if child.category_id not in visited:
                prune(child)

    def build_all(siblings) -> List[CategoryTreeNode]:
        nodes = []
        for record in siblings:
            if record.category_id in visited:
                continue
            if record.category_id in hidden:
                prune(record)
            else:
                nodes.append(build(record))
        return nodes

    def build(record) -> CategoryTreeNode:
        visited.add(record.category_id)
        node = CategoryTreeNode.model_validate(record)
        node.children = build_all(children_index.get(record.category_id, []))
        return node

    tree = build_all(children_index.get(ROOT_PARENT_ID, []))

    orphans = [record for record in records if record.category_id not in visited]
    if orphans:
        orphan_ids = [record.category_id for record in orphans]
        if include_orphans:
            logger.warning(f"Attaching unreachable categories as roots: {orphan_ids}")
            tree.extend(build_all(orphans))
        else:
            logger.warning(f"Dropping unreachable categories from tree: {orphan_ids}")

    if pruned:
        logger.debug(f"Left hidden categories out of tree: {pruned}")

    return tree
