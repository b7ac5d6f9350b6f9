"""
Token graph for multi-hop route discovery.

Uses NetworkX to connect tokens that can be converted into each other
on at least one venue, then samples closed routes with random walks.
"""

import logging

import networkx as nx

from mev_dashboard.core.types import RandomSource
from mev_dashboard.strategy.rates import RateTable


logger = logging.getLogger(__name__)

# Walk restarts allowed per requested cycle
MAX_WALK_ATTEMPTS = 20


class TokenGraph:
    """
    Undirected graph of convertible tokens.

    - Nodes are token symbols
    - An edge joins two tokens quoted on a common venue; the edge keeps
      the ids of those venues in its "venues" attribute
    """

    def __init__(self) -> None:
        self._graph: nx.Graph = nx.Graph()

    @classmethod
    def from_table(cls, table: RateTable, tokens: list[str] | None = None) -> "TokenGraph":
        """
        Build a graph from a rate table.

        Args:
            table: Current venue rates.
            tokens: Restrict the graph to these tokens (all by default).

        Returns:
            Populated graph.
        """
        graph = cls()
        graph.build(table, tokens)
        return graph

    def build(self, table: RateTable, tokens: list[str] | None = None) -> int:
        """
        Rebuild the graph from a rate table.

        Args:
            table: Current venue rates.
            tokens: Restrict the graph to these tokens (all by default).

        Returns:
            Number of edges added.
        """
        self._graph.clear()
        symbols = [t for t in (tokens if tokens is not None else table.tokens) if table.has_token(t)]
        self._graph.add_nodes_from(symbols)

        for i, a in enumerate(symbols):
            for b in symbols[i + 1:]:
                venues = table.common_venues(a, b)
                if venues:
                    self._graph.add_edge(a, b, venues=tuple(venues))

        logger.debug(
            f"Built token graph with {self._graph.number_of_nodes()} tokens, "
            f"{self._graph.number_of_edges()} edges"
        )

        return int(self._graph.number_of_edges())

    def neighbors(self, token: str) -> list[str]:
        """Tokens directly convertible from a token, in insertion order."""
        if token not in self._graph:
            return []
        return list(self._graph.neighbors(token))

    def venues_between(self, a: str, b: str) -> tuple[str, ...]:
        """Venues on which two tokens can be converted."""
        if not self._graph.has_edge(a, b):
            return ()
        return tuple(self._graph.edges[a, b]["venues"])

    def random_cycle(
        self,
        rng: RandomSource,
        length: int,
        start: str | None = None,
    ) -> list[str] | None:
        """
        Sample a closed route of distinct tokens.

        The walk picks a random unvisited neighbor at each step and
        succeeds when the last token connects back to the first.

        Args:
            rng: Random source.
            length: Number of distinct tokens (and hops) in the cycle.
            start: Fixed starting token, random when None.

        Returns:
            Tokens in visiting order without repeating the start, or
            None when no cycle was found.
        """
        nodes = list(self._graph.nodes)
        if length < 3 or len(nodes) < length:
            return None
        if start is not None and start not in self._graph:
            return None

        for _ in range(MAX_WALK_ATTEMPTS):
            first = start if start is not None else rng.choice(nodes)
            walk = [first]
            visited = {first}

            while len(walk) < length:
                candidates = [n for n in self._graph.neighbors(walk[-1]) if n not in visited]
                if not candidates:
                    break
                nxt = rng.choice(candidates)
                walk.append(nxt)
                visited.add(nxt)

            if len(walk) == length and self._graph.has_edge(walk[-1], first):
                return walk

        return None

    @property
    def node_count(self) -> int:
        """Number of tokens in the graph."""
        return int(self._graph.number_of_nodes())

    @property
    def edge_count(self) -> int:
        """Number of convertible token pairs."""
        return int(self._graph.number_of_edges())
