# git_graph_data.py

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CommitRecord:
    """One row of `git log --all --topo-order`, already parsed.

    `parents` keeps git's order: the first parent is the mainline continuation.
    Hashes are expected to be unique inside one fetched window.
    """

    hash: str
    parents: tuple[str, ...] = ()
    short_hash: str = ""
    message: str = ""
    author: str = ""
    date: str = ""
    branches: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    is_head: bool = False

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents

    def __repr__(self) -> str:
        return (
            f"CommitRecord(hash='{self.hash[:7]}', "
            f"parents={[p[:7] for p in self.parents]}, "
            f"branches={list(self.branches)}, "
            f"tags={list(self.tags)}, "
            f"message='{self.message[:20]}...', "
            f"is_head={self.is_head})"
        )


@dataclass
class NodePosition:
    hash: str
    lane: int
    row: int
    x: float
    y: float
    color_index: int


@dataclass
class ConnectorEdge:
    """A segment from a commit node to one of its parents.

    `to_hash` is None for a terminus edge: the parent lies outside the fetched
    window and the line runs straight down to the bottom boundary.
    """

    from_hash: str
    to_hash: Optional[str]
    color_index: int
    x1: float
    y1: float
    x2: float
    y2: float
    parent_index: int = 0

    @property
    def is_terminus(self) -> bool:
        return self.to_hash is None

    @property
    def is_straight(self) -> bool:
        return self.x1 == self.x2


@dataclass
class GraphLayout:
    lanes: list[int] = field(default_factory=list)
    nodes: list[NodePosition] = field(default_factory=list)
    edges: list[ConnectorEdge] = field(default_factory=list)
    max_lane: int = 1
    row_height: float = 32
    column_width: float = 14
    padding_left: float = 8

    @property
    def row_count(self) -> int:
        return len(self.nodes)

    @property
    def width(self) -> float:
        return self.max_lane * self.column_width + self.padding_left * 2

    @property
    def height(self) -> float:
        return self.row_count * self.row_height

    def edges_from(self, commit_hash: str) -> list[ConnectorEdge]:
        return [edge for edge in self.edges if edge.from_hash == commit_hash]
