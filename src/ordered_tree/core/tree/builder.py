"""Build an indexed, depth-annotated forest from flat parent-referencing records."""

from collections.abc import Collection, Iterator, Sequence
from typing import Any

from loguru import logger

from ordered_tree.core.order.allocator import sort_siblings
from ordered_tree.errors import StructuralError
from ordered_tree.models.node import CollapsedIndexes, DatumFunctions, TreeBuild, TreeNode


def build_tree(
    data: Sequence[Any],
    functions: DatumFunctions,
    *,
    user_controlled_expansion_ids: Collection[str] = (),
) -> TreeBuild:
    """Arrange flat records into a tree.

    Args:
        data: Records, in any order. Never mutated.
        functions: Accessors for the records.
        user_controlled_expansion_ids: Ids whose collapse state always comes
            from ``functions.is_collapsed``, even while a filter is active.

    Returns:
        A TreeBuild whose indexes are a pre-order walk of the visible nodes.
        Records whose parent is missing are built as roots and also listed in
        ``orphan_data``.

    Raises:
        StructuralError: Ids are duplicated, or no record can anchor the tree
            (no roots and no orphans), or a parent chain loops.
    """
    get_id = functions.get_id
    get_parent_id = functions.get_parent_id

    data_by_id: dict[str, Any] = {}
    for datum in data:
        datum_id = get_id(datum)
        if datum_id in data_by_id:
            msg = f"Duplicate record id: {datum_id!r}"
            raise StructuralError(msg)
        data_by_id[datum_id] = datum

    orphan_data = tuple(
        d for d in data if get_parent_id(d) is not None and get_parent_id(d) not in data_by_id
    )
    has_root = any(get_parent_id(d) is None for d in data)
    if data and not has_root and not orphan_data:
        msg = "No root records: every record's parent is another record in the data"
        raise StructuralError(msg)

    _check_for_cycles(data_by_id, functions)

    filtered_in = _filter_index(data_by_id, functions)

    expansion_overrides: dict[str, str] = {}
    if functions.is_filtered_out is not None:
        expansion_overrides = {
            datum_id: "expanded" if datum_id in filtered_in else "collapsed"
            for datum_id in data_by_id
        }

    # Orphans sit among the roots so their subtrees stay reachable.
    children_by_parent_id: dict[str | None, list[Any]] = {}
    for datum in data:
        if get_id(datum) not in filtered_in:
            continue
        parent_id = get_parent_id(datum)
        if parent_id not in data_by_id:
            parent_id = None
        children_by_parent_id.setdefault(parent_id, []).append(datum)

    builder = _SiblingBuilder(
        functions=functions,
        children_by_parent_id=children_by_parent_id,
        expansion_overrides=expansion_overrides,
        user_controlled_expansion_ids=frozenset(user_controlled_expansion_ids),
    )
    root_data = tuple(children_by_parent_id.get(None, ()))
    roots = builder.build_siblings(root_data, ())

    if orphan_data:
        logger.warning(
            "{} records reference a missing parent, shown as roots: {}",
            len(orphan_data),
            sorted(get_id(d) for d in orphan_data),
        )
    logger.debug(
        "Built tree: {} records, {} visible nodes, {} missing orders",
        len(data),
        builder.next_index,
        len(builder.missing_orders_by_id),
    )

    return TreeBuild(
        roots=roots,
        root_data=root_data,
        tree_size=builder.next_index,
        missing_orders_by_id=builder.missing_orders_by_id,
        nodes_by_index=builder.nodes_by_index,
        nodes_by_id=builder.nodes_by_id,
        indexes_by_id=builder.indexes_by_id,
        orphan_data=orphan_data,
        expansion_overrides=expansion_overrides,
    )


def _check_for_cycles(data_by_id: dict[str, Any], functions: DatumFunctions) -> None:
    """Raise StructuralError if any parent chain revisits a record."""
    anchored: set[str] = set()
    for datum_id in data_by_id:
        chain: list[str] = []
        seen: set[str] = set()
        current: str | None = datum_id
        while current is not None and current in data_by_id and current not in anchored:
            if current in seen:
                msg = f"Parent chain of {datum_id!r} loops back to {current!r}"
                raise StructuralError(msg)
            seen.add(current)
            chain.append(current)
            current = functions.get_parent_id(data_by_id[current])
        anchored.update(chain)


def _filter_index(data_by_id: dict[str, Any], functions: DatumFunctions) -> set[str]:
    """Ids that stay visible: records passing the filter plus all their ancestors."""
    is_filtered_out = functions.is_filtered_out
    if is_filtered_out is None:
        return set(data_by_id)

    filtered_in: set[str] = set()
    for datum_id, datum in data_by_id.items():
        if is_filtered_out(datum):
            continue
        current: str | None = datum_id
        # Chains are acyclic here, so the walk ends at a root or a missing parent.
        while current is not None and current in data_by_id and current not in filtered_in:
            filtered_in.add(current)
            current = functions.get_parent_id(data_by_id[current])
    return filtered_in


class _SiblingBuilder:
    """Recursive pre-order builder holding the indexes shared by all levels."""

    def __init__(
        self,
        *,
        functions: DatumFunctions,
        children_by_parent_id: dict[str | None, list[Any]],
        expansion_overrides: dict[str, str],
        user_controlled_expansion_ids: frozenset[str],
    ) -> None:
        self.functions = functions
        self.children_by_parent_id = children_by_parent_id
        self.expansion_overrides = expansion_overrides
        self.user_controlled_expansion_ids = user_controlled_expansion_ids
        self.next_index = 0
        self.missing_orders_by_id: dict[str, float] = {}
        self.nodes_by_index: dict[int, TreeNode] = {}
        self.nodes_by_id: dict[str, TreeNode] = {}
        self.indexes_by_id: dict[str, int] = {}

    def is_collapsed(self, datum: Any) -> bool:
        datum_id = self.functions.get_id(datum)
        override = self.expansion_overrides.get(datum_id)
        if override is None or datum_id in self.user_controlled_expansion_ids:
            return bool(self.functions.is_collapsed(datum))
        return override == "collapsed"

    def build_siblings(
        self, siblings: Sequence[Any], parent_ids: tuple[str, ...]
    ) -> tuple[TreeNode, ...]:
        fns = self.functions
        ordered = sort_siblings(
            siblings,
            self.missing_orders_by_id,
            get_id=fns.get_id,
            get_order=fns.get_order,
            compare=fns.compare,
        )

        nodes: list[TreeNode] = []
        for position, datum in enumerate(ordered):
            node_id = fns.get_id(datum)
            index = self.next_index
            self.next_index += 1

            child_data = self.children_by_parent_id.get(node_id, [])
            collapsed = self.is_collapsed(datum)
            children: tuple[TreeNode, ...] = ()
            if child_data and not collapsed:
                children = self.build_siblings(child_data, (node_id, *parent_ids))

            order = fns.get_order(datum)
            node = TreeNode(
                id=node_id,
                data=datum,
                children=children,
                parent_ids=parent_ids,
                is_last_child=position == len(ordered) - 1,
                index=index,
                order=order if order is not None else self.missing_orders_by_id[node_id],
                is_collapsed=collapsed,
                child_count=len(child_data),
            )
            self.nodes_by_index[index] = node
            self.nodes_by_id[node_id] = node
            self.indexes_by_id[node_id] = index
            nodes.append(node)

        return tuple(nodes)


def count_descendants(node: TreeNode) -> int:
    """Number of visible nodes below ``node``."""
    return sum(1 + count_descendants(child) for child in node.children)


def iter_nodes(build: TreeBuild) -> Iterator[TreeNode]:
    """Visible nodes in index (pre-order) order."""
    for index in range(build.tree_size):
        yield build.nodes_by_index[index]


def build_tree_indexes_with_node_collapsed(tree: TreeBuild, node: TreeNode) -> CollapsedIndexes:
    """Index mapping as if ``node``'s visible subtree were removed from the tree.

    ``node`` keeps its own index; every row after its subtree shifts up.
    """
    splice_start = tree.indexes_by_id[node.id] + 1
    splice_length = count_descendants(node)
    size = tree.tree_size - splice_length

    nodes_by_index: dict[int, TreeNode] = {}
    indexes_by_id: dict[str, int] = {}
    for new_index in range(size):
        tree_index = new_index if new_index < splice_start else new_index + splice_length
        indexed = tree.nodes_by_index[tree_index]
        nodes_by_index[new_index] = indexed
        indexes_by_id[indexed.id] = new_index

    return CollapsedIndexes(
        nodes_by_index=nodes_by_index, indexes_by_id=indexes_by_id, tree_size=size
    )
