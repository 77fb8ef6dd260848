"""Library routes: level catalog, toolbox parts and gap regions."""

from fastapi import APIRouter, HTTPException, Request

from circuit_backend.models import (
    ComponentLibraryResponse,
    ComponentTemplateOut,
    LevelListResponse,
    LevelOut,
    RegionOut,
)
from circuit_engine.aggregation import SUPPLY_VOLTAGE
from circuit_engine.components import TOOLBOX_TEMPLATES
from circuit_engine.errors import InvalidLevel
from circuit_engine.placement import DEFAULT_REGIONS

router = APIRouter()


def _level_out(catalog, level) -> LevelOut:
    return LevelOut(**level.to_dict(), next_id=catalog.next_id(level.id))


@router.get("/levels", response_model=LevelListResponse)
async def list_levels(request: Request):
    """All puzzles, in play order."""
    catalog = request.app.state.catalog
    return LevelListResponse(
        levels=[_level_out(catalog, level) for level in catalog],
        total=len(catalog),
    )


@router.get("/levels/{level_id}", response_model=LevelOut)
async def get_level(level_id: int, request: Request):
    catalog = request.app.state.catalog
    try:
        level = catalog.get(level_id)
    except InvalidLevel as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _level_out(catalog, level)


@router.get("/library/components", response_model=ComponentLibraryResponse)
async def list_components():
    """Toolbox palette plus the canvas gap each kind must be dropped into."""
    return ComponentLibraryResponse(
        templates=[ComponentTemplateOut(**t.to_dict()) for t in TOOLBOX_TEMPLATES],
        regions={kind.value: RegionOut(**region.to_dict()) for kind, region in DEFAULT_REGIONS.items()},
        supply_voltage=SUPPLY_VOLTAGE,
    )
