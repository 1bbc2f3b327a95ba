"""GET /api/v1/map: static terrain data (fetch once)."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from evorts.api.dependencies import get_engine_manager
from evorts.api.engine_manager import EngineManager
from evorts.api.schemas import MapResponse
from evorts.core.grid import Grid

router = APIRouter()


def encode_rle(grid: Grid) -> list[int]:
    """Run-length encode row-major tiles as ``[value, count, value, count, ...]``."""
    rle: list[int] = []
    cur_val: int | None = None
    cur_count = 0
    for y in range(grid.height):
        for x in range(grid.width):
            v = int(grid.get(x, y))
            if v == cur_val:
                cur_count += 1
                continue
            if cur_val is not None:
                rle.append(cur_val)
                rle.append(cur_count)
            cur_val = v
            cur_count = 1
    if cur_val is not None:
        rle.append(cur_val)
        rle.append(cur_count)
    return rle


@router.get("/map", response_model=MapResponse)
def get_map(manager: EngineManager = Depends(get_engine_manager)) -> MapResponse:
    grid = manager.get_grid()
    if grid is None:
        raise HTTPException(status_code=503, detail="Simulation not initialized yet.")
    return MapResponse(
        width=grid.width,
        height=grid.height,
        tile_size=manager.config.tile_size,
        grid=encode_rle(grid),
    )
