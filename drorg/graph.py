"""In-memory document linkage graphs and ancestor path search.

Drive folders form an arbitrary directed graph: a document may have several
parents and folder cycles are possible. Graphs here are plain arenas, nodes
addressed by integer index, so cycles cost nothing to represent.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from drorg.storage.backend import MirrorStore


@dataclass
class LinkageGraph:
    """One account's parent/child links.

    With ``transposed`` false edges point parent -> child; with it true they
    point child -> parent, which is the orientation ancestor search needs.
    """

    account_id: int
    transposed: bool
    nodes: list[str] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    edges: list[list[int]] = field(default_factory=list)

    def node(self, doc_id: str) -> int:
        """Index of doc_id's node, creating the node if needed."""
        ix = self.index.get(doc_id)
        if ix is None:
            ix = len(self.nodes)
            self.nodes.append(doc_id)
            self.edges.append([])
            self.index[doc_id] = ix
        return ix

    def add_edge(self, src: int, dst: int) -> None:
        self.edges[src].append(dst)

    def neighbors(self, ix: int) -> list[int]:
        return self.edges[ix]

    def externals(self) -> set[int]:
        """Nodes without outgoing edges."""
        return {ix for ix, out in enumerate(self.edges) if not out}

    def __len__(self) -> int:
        return len(self.nodes)


def load_linkage_graph(store: MirrorStore, account_id: int, *, transposed: bool) -> LinkageGraph:
    graph = LinkageGraph(account_id=account_id, transposed=transposed)
    # links has a (account_id, parent_id, child_id) primary key, so no edge is added twice.
    for link in store.links_for_account(account_id):
        pix = graph.node(link.parent_id)
        cix = graph.node(link.child_id)
        if transposed:
            graph.add_edge(cix, pix)
        else:
            graph.add_edge(pix, cix)
    return graph


def find_parent_paths(graph: LinkageGraph, start_id: str) -> list[list[str]]:
    """Find the folder paths that lead to ``start_id``.

    Each path lists document ids from the outermost folder down to the one
    directly containing the target; the target itself is not included. An
    empty result means the document is not filed anywhere this account can
    see (typically something shared but never added to My Drive). A result
    of ``[[]]`` means the document is itself a root.

    The walk is depth-first over a stack and remembers one predecessor per
    node. A node may be reached again through a different parent, as long as
    that does not put it twice on the chain being built, so reconverging
    folders yield several paths while cycles are cut.
    """
    if not graph.transposed:
        raise ValueError("find_parent_paths needs a graph loaded with transposed=True")

    roots = graph.externals()

    start_ix = graph.index.get(start_id)
    if start_ix is None:
        return []

    queue = [start_ix]
    path_data: dict[int, int | None] = {start_ix: None}
    results: list[list[str]] = []

    while queue:
        cur_ix = queue.pop()

        if cur_ix in roots:
            path = []
            ix = cur_ix
            while (pred := path_data[ix]) is not None:
                path.append(graph.nodes[ix])
                ix = pred
            results.append(path)

        for next_ix in graph.neighbors(cur_ix):
            if next_ix in queue:
                continue

            # Following this edge must not revisit a node already on the chain.
            walk: int | None = cur_ix
            found_loop = False
            while walk is not None:
                if walk == next_ix:
                    found_loop = True
                    break
                walk = path_data[walk]
            if found_loop:
                continue

            path_data[next_ix] = cur_ix
            queue.append(next_ix)

    return results


__all__ = ["LinkageGraph", "find_parent_paths", "load_linkage_graph"]
