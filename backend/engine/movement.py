"""
Movement calculations on the board graph.

Reach is computed as a layered walk over the stored edges: layer k holds the tiles
entered with k steps. An edge is consumed the first time either endpoint is in the
previous layer, so no edge is walked twice and cyclic topology terminates; the whole
walk costs O(edges * movement) at most.
"""

from typing import Sequence

from backend.engine.definitions import BoardDefinition
from backend.engine.state import BoardState


def get_occupancy(board: BoardState) -> list[bool]:
    """True for every tile holding a unit."""
    return [unit is not None for unit in board]


def _stored_edges(board_def: BoardDefinition) -> list[tuple[int, int]]:
    return [
        (source, target)
        for source, targets in enumerate(board_def.edges)
        for target in targets
    ]


def get_reachable_tiles(
    board_def: BoardDefinition,
    from_tile: int,
    movement: int,
    occupancy: Sequence[bool],
) -> list[list[int]]:
    """
    Tiles reachable from from_tile, grouped by step count.

    Returns a list of movement + 1 layers; layer 0 is [from_tile]. A tile can be
    entered (and walked through) only when it is unoccupied.
    """
    edges = _stored_edges(board_def)
    reach: list[list[int]] = [[from_tile]]
    for _ in range(movement):
        previous = set(reach[-1])
        layer: list[int] = []
        remaining = []
        for source, target in edges:
            consumed = False
            if source in previous:
                consumed = True
                if not occupancy[target] and target not in layer:
                    layer.append(target)
            if target in previous:
                consumed = True
                if not occupancy[source] and source not in layer:
                    layer.append(source)
            if not consumed:
                remaining.append((source, target))
        edges = remaining
        reach.append(layer)
    return reach


def is_tile_reachable(
    board_def: BoardDefinition,
    target_tile: int,
    from_tile: int,
    movement: int,
    occupancy: Sequence[bool],
) -> bool:
    """
    Short-circuiting variant of get_reachable_tiles for validation.
    True as soon as target_tile is entered within movement steps.
    """
    if target_tile == from_tile:
        return True
    edges = _stored_edges(board_def)
    previous = {from_tile}
    for _ in range(movement):
        layer: set[int] = set()
        remaining = []
        for source, target in edges:
            consumed = False
            if source in previous:
                consumed = True
                if not occupancy[target]:
                    if target == target_tile:
                        return True
                    layer.add(target)
            if target in previous:
                consumed = True
                if not occupancy[source]:
                    if source == target_tile:
                        return True
                    layer.add(source)
            if not consumed:
                remaining.append((source, target))
        if not layer:
            return False
        edges = remaining
        previous = layer
    return False


def flatten_reach(reach: list[list[int]]) -> list[int]:
    """Distinct tiles across all layers, in first-seen order."""
    flattened: list[int] = []
    for layer in reach:
        for tile in layer:
            if tile not in flattened:
                flattened.append(tile)
    return flattened


def get_deploy_tiles(
    board_def: BoardDefinition,
    player_index: int,
    movement: int,
    occupancy: Sequence[bool],
) -> list[int]:
    """
    Empty tiles a bench unit with this movement may be deployed to.

    A movement-1 unit lands directly on an empty spawn tile. Faster units spend one
    step leaving the bench onto a spawn tile, then may continue movement - 1 steps
    from any unoccupied spawn tile.
    """
    spawns = [t for t in board_def.spawn_tiles_for(player_index) if not occupancy[t]]
    if movement == 1:
        return spawns
    tiles: list[int] = []
    for spawn in spawns:
        for tile in flatten_reach(get_reachable_tiles(board_def, spawn, movement - 1, occupancy)):
            if not occupancy[tile] and tile not in tiles:
                tiles.append(tile)
    return sorted(tiles)


def can_deploy_to(
    board_def: BoardDefinition,
    player_index: int,
    movement: int,
    to_tile: int,
    occupancy: Sequence[bool],
) -> bool:
    """Validation hot path for deployment; see get_deploy_tiles."""
    if occupancy[to_tile]:
        return False
    spawns = board_def.spawn_tiles_for(player_index)
    if movement == 1:
        return to_tile in spawns
    for spawn in spawns:
        if occupancy[spawn]:
            continue
        if is_tile_reachable(board_def, to_tile, spawn, movement - 1, occupancy):
            return True
    return False
