# git_graph_layout.py

from typing import Optional, Sequence

from git_graph_data import CommitRecord, ConnectorEdge, GraphLayout, NodePosition

# Presentation scale, in pixels. Only used to turn lane/row indices into coordinates.
ROW_HEIGHT = 32
COLUMN_WIDTH = 14
PADDING_LEFT = 8
NODE_RADIUS = 4

# Number of distinct lane colours; the renderer owns the actual colour values.
PALETTE_SIZE = 8


def lane_color_index(lane: int, palette_size: int = PALETTE_SIZE) -> int:
    return lane % palette_size if palette_size > 0 else 0


class _LaneTable:
    """Two parallel growable lists: whether a lane is occupied, and which hash it waits for."""

    def __init__(self):
        self.occupied: list[bool] = []
        self.expecting: list[Optional[str]] = []

    def __len__(self) -> int:
        return len(self.occupied)

    def grow(self) -> int:
        self.occupied.append(False)
        self.expecting.append(None)
        return len(self.occupied) - 1

    def lane_expecting(self, commit_hash: str) -> int:
        # First match wins when several lanes wait for the same hash
        for lane, expected in enumerate(self.expecting):
            if expected == commit_hash:
                return lane
        return -1

    def first_free(self, exclude: int = -1) -> int:
        for lane, occupied in enumerate(self.occupied):
            if not occupied and lane != exclude:
                return lane
        return self.grow()

    def reserve(self, lane: int, commit_hash: Optional[str]):
        self.occupied[lane] = True
        self.expecting[lane] = commit_hash

    def release(self, lane: int):
        self.occupied[lane] = False
        self.expecting[lane] = None


def assign_lanes(commits: Sequence[CommitRecord]) -> list[int]:
    """
    Assigns a lane (column) to every commit in a single forward pass.

    `commits` must be in the order git log emits them: newest first, children
    before parents except across diverging branches.

    A commit takes the lane that is waiting for its hash; otherwise it starts a
    new line in the lowest free lane. Its first parent is then expected in the
    same lane and every further (merge) parent gets its own lane unless some
    lane already waits for it. A root commit frees its lane immediately.

    After each row, lanes waiting for a hash that never shows up again in the
    remaining rows are released, so a parent outside the fetched window does
    not block a column forever.
    """
    last_row: dict[str, int] = {}
    for row, commit in enumerate(commits):
        last_row[commit.hash] = row

    table = _LaneTable()
    lanes: list[int] = []

    for row, commit in enumerate(commits):
        lane = table.lane_expecting(commit.hash)
        if lane == -1:
            lane = table.first_free()
        lanes.append(lane)
        table.reserve(lane, None)

        if commit.parents:
            table.expecting[lane] = commit.parents[0]
            for parent_hash in commit.parents[1:]:
                if table.lane_expecting(parent_hash) != -1:
                    continue
                parent_lane = table.first_free(exclude=lane)
                table.reserve(parent_lane, parent_hash)
        else:
            table.occupied[lane] = False

        for candidate in range(len(table)):
            expected = table.expecting[candidate]
            if expected is not None and last_row.get(expected, -1) <= row:
                table.release(candidate)

    return lanes


def calculate_graph_layout(
    commits: Sequence[CommitRecord],
    row_height: float = ROW_HEIGHT,
    column_width: float = COLUMN_WIDTH,
    padding_left: float = PADDING_LEFT,
    palette_size: int = PALETTE_SIZE,
) -> GraphLayout:
    """
    Computes lanes, node positions and connector edges for an ordered commit window.

    The result depends only on the arguments; nothing is cached between calls,
    so every refresh lays the graph out from scratch.

    Edge colours: the first-parent edge takes the child's lane colour, other
    parent edges take the parent's lane colour so a merge line arrives in the
    colour of the branch it came from. A parent missing from the window gets a
    terminus edge running straight down to the bottom of the rows.
    """
    layout = GraphLayout(row_height=row_height, column_width=column_width, padding_left=padding_left)
    if not commits:
        return layout

    lanes = assign_lanes(commits)

    # Duplicate hashes resolve to their last row
    hash_to_row: dict[str, int] = {}
    for row, commit in enumerate(commits):
        hash_to_row[commit.hash] = row

    nodes = [
        NodePosition(
            hash=commit.hash,
            lane=lanes[row],
            row=row,
            x=lanes[row] * column_width + padding_left,
            y=row * row_height + row_height / 2,
            color_index=lane_color_index(lanes[row], palette_size),
        )
        for row, commit in enumerate(commits)
    ]

    bottom = len(commits) * row_height
    edges: list[ConnectorEdge] = []
    for row, commit in enumerate(commits):
        node = nodes[row]
        for parent_index, parent_hash in enumerate(commit.parents):
            parent_row = hash_to_row.get(parent_hash)
            if parent_row is None:
                edges.append(
                    ConnectorEdge(
                        from_hash=commit.hash,
                        to_hash=None,
                        color_index=node.color_index,
                        x1=node.x,
                        y1=node.y,
                        x2=node.x,
                        y2=bottom,
                        parent_index=parent_index,
                    )
                )
                continue

            parent_node = nodes[parent_row]
            edges.append(
                ConnectorEdge(
                    from_hash=commit.hash,
                    to_hash=parent_hash,
                    color_index=node.color_index if parent_index == 0 else parent_node.color_index,
                    x1=node.x,
                    y1=node.y,
                    x2=parent_node.x,
                    y2=parent_node.y,
                    parent_index=parent_index,
                )
            )

    layout.lanes = lanes
    layout.nodes = nodes
    layout.edges = edges
    layout.max_lane = max(lanes, default=0) + 1
    return layout


if __name__ == "__main__":
    import sys

    from git_manager import GitManager

    manager = GitManager(sys.argv[1] if len(sys.argv) > 1 else ".")
    if manager.initialize():
        records = manager.get_commit_graph(limit=30)
        graph = calculate_graph_layout(records)
        for record, lane in zip(records, graph.lanes):
            print(f"{'  ' * lane}*  {record.short_hash} {record.message[:60]}")
        print(f"{len(records)} commits, {graph.max_lane} lanes, {len(graph.edges)} edges")
