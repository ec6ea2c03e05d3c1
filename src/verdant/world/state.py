"""Live, read-only views of the garden for the orchestrator and prompt builder."""

from typing import (
    Dict,
    List,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.world.catalog import (
    agent_profile,
    display_name,
)
from verdant.world.garden import (
    Flower,
    Garden,
)


class FlowerInfo(BaseModel):
    """Flower as seen by the agent."""

    id: str
    name: str
    variety_key: str
    col: int
    row: int
    is_harvestable: bool
    growth_percent: int


class SnapshotSummary(BaseModel):
    total: int = 0
    harvestable: int = 0
    growing: int = 0


class WorldSnapshot(BaseModel):
    """Aggregated garden state, cheap to compute every turn."""

    counters: Dict[str, int] = Field(default_factory=dict)
    cells: Dict[str, List[FlowerInfo]] = Field(
        default_factory=dict, description='Flowers keyed by "col,row", every cell present'
    )
    flowers: List[FlowerInfo] = Field(default_factory=list)
    summary: SnapshotSummary = Field(default_factory=SnapshotSummary)

    @property
    def gold(self) -> int:
        return self.counters.get("gold", 0)


class VarietyInfo(BaseModel):
    key: str
    display_name: str
    trait: str = ""


class GardenStateProvider:
    """Builds :class:`WorldSnapshot`s from a :class:`Garden`."""

    def __init__(self, garden: Garden):
        self.garden = garden

    def _info(self, flower: Flower) -> FlowerInfo:
        return FlowerInfo(
            id=flower.id,
            name=display_name(self.garden.catalog, flower.variety_key),
            variety_key=flower.variety_key,
            col=flower.col,
            row=flower.row,
            is_harvestable=self.garden.is_harvestable(flower),
            growth_percent=self.garden.growth_percent(flower),
        )

    def get_snapshot(self) -> WorldSnapshot:
        cells: Dict[str, List[FlowerInfo]] = {}
        flowers: List[FlowerInfo] = []
        for cell in self.garden.grid:
            infos = [self._info(f) for f in cell.flowers]
            cells[cell.key] = infos
            flowers.extend(infos)
        harvestable = sum(1 for f in flowers if f.is_harvestable)
        return WorldSnapshot(
            counters={
                "gold": self.garden.gold,
                "flower_count": len(flowers),
                "cols": self.garden.grid.cols,
                "rows": self.garden.grid.rows,
            },
            cells=cells,
            flowers=flowers,
            summary=SnapshotSummary(
                total=len(flowers), harvestable=harvestable, growing=len(flowers) - harvestable
            ),
        )

    def get_available_varieties(self) -> List[VarietyInfo]:
        return [
            VarietyInfo(
                key=key,
                display_name=display_name(self.garden.catalog, key),
                trait=str(agent_profile(self.garden.catalog, key).get("personality", "")),
            )
            for key in self.garden.catalog
        ]
