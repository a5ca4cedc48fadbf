"""Average-linkage agglomerative clustering of clients.

Node ids follow the scipy linkage convention: leaves are 0..n-1 in client
order and the i-th merge creates node n + i. The resulting tree can be
exported as a scipy linkage matrix for dendrogram rendering.
"""

import logging
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
from scipy.cluster import hierarchy

from servicerec.exceptions import ParameterError, ValidationError
from servicerec.segmentation.distance import ClientDistanceMatrix

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_N_CLUSTERS = 4
TIE_TOLERANCE = 1e-12


class Merge(NamedTuple):
    left: int
    right: int
    distance: float
    size: int


class ClusterTree:
    """Binary merge tree (dendrogram) over the clients of a distance matrix."""

    def __init__(self, clients: List[str], merges: List[Merge]):
        if len(merges) != len(clients) - 1:
            raise ValidationError(
                f"A tree over {len(clients)} clients needs {len(clients) - 1} "
                f"merges, got {len(merges)}",
                details={"num_clients": len(clients), "num_merges": len(merges)},
            )
        self.clients = list(clients)
        self.merges = list(merges)

    @property
    def n_clients(self) -> int:
        return len(self.clients)

    @property
    def root(self) -> int:
        return 2 * self.n_clients - 2

    def children(self, node: int) -> Tuple[int, int]:
        merge = self.merges[node - self.n_clients]
        return merge.left, merge.right

    def members(self, node: int) -> List[int]:
        """Client indices under a node, ascending."""
        if node < self.n_clients:
            return [node]
        left, right = self.children(node)
        return sorted(self.members(left) + self.members(right))

    def leaf_order(self) -> List[str]:
        """Clients in left-to-right dendrogram order."""
        order = []
        stack = [self.root]
        while stack:
            node = stack.pop()
            if node < self.n_clients:
                order.append(self.clients[node])
            else:
                left, right = self.children(node)
                stack.append(right)
                stack.append(left)
        return order

    def cut(self, k: int) -> Dict[str, int]:
        """Assign every client to one of k clusters.

        Replays the first n - k merges; the remaining components are numbered
        1..k in order of their lowest client index.

        Raises:
            ParameterError: If k is not in [1, n_clients].
        """
        n = self.n_clients
        if isinstance(k, bool) or not isinstance(k, int) or not 1 <= k <= n:
            raise ParameterError("n_clusters", k, f"must be an integer in [1, {n}]")

        components: Dict[int, List[int]] = {i: [i] for i in range(n)}
        for step, merge in enumerate(self.merges[: n - k]):
            components[n + step] = components.pop(merge.left) + components.pop(merge.right)

        assignment = [0] * n
        for cluster_id, members in enumerate(sorted(components.values(), key=min), start=1):
            for client_idx in members:
                assignment[client_idx] = cluster_id

        return {client: assignment[idx] for idx, client in enumerate(self.clients)}

    def to_linkage_matrix(self) -> np.ndarray:
        """(n - 1, 4) float array in scipy.cluster.hierarchy linkage format."""
        return np.array(
            [[m.left, m.right, m.distance, m.size] for m in self.merges],
            dtype=float,
        ).reshape(len(self.merges), 4)

    def dendrogram_data(self, n_clusters: Optional[int] = None) -> Dict:
        """Coordinates for drawing the dendrogram, computed by scipy.

        Args:
            n_clusters: If given, branches below the height of the cut into
                that many clusters share a color.

        Returns:
            scipy.cluster.hierarchy.dendrogram output (icoord, dcoord, ivl,
            leaves, color_list) with client identifiers as leaf labels.
        """
        linkage_matrix = self.to_linkage_matrix()
        color_threshold = None
        if n_clusters is not None:
            self.cut(n_clusters)
            if n_clusters > 1:
                # midway between the last applied merge and the first skipped one
                heights = linkage_matrix[:, 2]
                applied = self.n_clients - n_clusters
                lower = heights[applied - 1] if applied > 0 else 0.0
                color_threshold = float(lower + heights[applied]) / 2.0
            else:
                color_threshold = float(linkage_matrix[-1, 2]) + 1.0

        return hierarchy.dendrogram(
            linkage_matrix,
            labels=self.clients,
            no_plot=True,
            color_threshold=color_threshold,
        )

    def to_dict(self) -> Dict:
        return {
            "clients": list(self.clients),
            "merges": [m._asdict() for m in self.merges],
            "leaf_order": self.leaf_order(),
        }


def average_linkage(distances: ClientDistanceMatrix) -> ClusterTree:
    """Build an average-linkage cluster tree.

    Starting from singletons, repeatedly merges the two clusters with the
    smallest mean pairwise member distance. When several pairs tie at the
    minimum, the pair whose clusters' lowest client indices have the smallest
    sum wins, then the one with the smallest lowest index.

    Args:
        distances: Validated client distance matrix.

    Returns:
        ClusterTree with n_clients - 1 merges.
    """
    grid = distances.values
    n = distances.size

    clusters: Dict[int, List[int]] = {i: [i] for i in range(n)}
    pair_distance: Dict[Tuple[int, int], float] = {
        (i, j): float(grid[i, j]) for i in range(n) for j in range(i + 1, n)
    }

    merges: List[Merge] = []
    for step in range(n - 1):
        best = min(pair_distance.values())
        tied = [pair for pair, d in pair_distance.items() if d - best <= TIE_TOLERANCE]
        a, b = min(
            tied,
            key=lambda pair: (
                clusters[pair[0]][0] + clusters[pair[1]][0],
                min(clusters[pair[0]][0], clusters[pair[1]][0]),
            ),
        )

        new_node = n + step
        members = sorted(clusters.pop(a) + clusters.pop(b))
        merges.append(Merge(a, b, pair_distance[(a, b)], len(members)))

        pair_distance = {
            pair: d for pair, d in pair_distance.items()
            if a not in pair and b not in pair
        }
        for other, other_members in clusters.items():
            pair_distance[(other, new_node)] = float(
                grid[np.ix_(members, other_members)].mean()
            )
        clusters[new_node] = members

        logger.debug(
            "Merged clusters",
            extra={"step": step, "left": a, "right": b, "height": merges[-1].distance},
        )

    logger.info(
        "Cluster tree built",
        extra={"num_clients": n, "num_merges": len(merges)},
    )
    return ClusterTree(distances.clients, merges)


def cluster_clients(distances: ClientDistanceMatrix, n_clusters: int) -> Dict[str, int]:
    """Build the tree and cut it into n_clusters groups in one call."""
    return average_linkage(distances).cut(n_clusters)
