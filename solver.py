from collections import deque
from typing import List, Optional

import networkx as nx

from grid_model import CellKind, Coordinate, EventCallback, Grid, emit

# Neighbor exploration order: down, right, up, left.
# Among equally short paths, BFS returns the one this order reaches first.
DIRECTIONS = ((0, 1), (1, 0), (0, -1), (-1, 0))


def build_graph(grid: Grid) -> nx.Graph:
    """One node per walkable cell; edges join 4-adjacent walkable cells."""
    G = nx.Graph()
    for cell in grid.cells:
        if cell.kind is not CellKind.BLOCKED:
            G.add_node(cell.pos, kind=cell.kind, order=cell.order)

    for (x, y) in list(G.nodes):
        # right and down are enough to cover every undirected edge
        for nxt in ((x + 1, y), (x, y + 1)):
            if nxt in G:
                G.add_edge((x, y), nxt)
    return G


def find_path_bfs(G: nx.Graph, start: Coordinate, goal: Coordinate) -> Optional[List[Coordinate]]:
    """
    Fewest-hop path from start to goal, inclusive of both ends, or None
    if goal cannot be reached. Each coordinate is expanded at most once.
    """
    visited = set()
    queue = deque([(start, [start])])
    while queue:
        pos, path = queue.popleft()
        if pos in visited:
            continue
        visited.add(pos)
        if pos == goal:
            return path

        for dx, dy in DIRECTIONS:
            nxt = (pos[0] + dx, pos[1] + dy)
            if G.has_edge(pos, nxt) and nxt not in visited:
                queue.append((nxt, path + [nxt]))
    return None


def synthesize_path(grid: Grid, on_event: Optional[EventCallback] = None) -> List[Coordinate]:
    """
    Visit every numbered cell in ascending order, joining consecutive
    numbers by a shortest walkable route.

    Degenerate inputs never raise:
      - no numbered cells      -> [(0, 0), (cols-1, rows-1)]
      - unreachable next number -> the direct pair [current, next] is used,
        which may cross blocked cells
    """
    numbered = grid.numbered_cells()
    if not numbered:
        emit(on_event, "no_numbered_cells", rows=grid.rows, cols=grid.cols)
        return [(0, 0), (grid.cols - 1, grid.rows - 1)]

    G = build_graph(grid)
    full_path: List[Coordinate] = []
    for current, nxt in zip(numbered, numbered[1:]):
        segment = find_path_bfs(G, current.pos, nxt.pos)
        if segment is None:
            emit(on_event, "segment_unreachable", start=current.pos, goal=nxt.pos,
                 start_order=current.order, goal_order=nxt.order)
            segment = [current.pos, nxt.pos]
        else:
            emit(on_event, "segment_found", start=current.pos, goal=nxt.pos, hops=len(segment) - 1)
        # the shared endpoint is added by the next segment (or at the end)
        full_path.extend(segment[:-1])

    full_path.append(numbered[-1].pos)
    return full_path if full_path else [(0, 0)]
