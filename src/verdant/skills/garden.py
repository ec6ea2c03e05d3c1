"""Garden management skill: plant, query, list varieties, resize."""

import logging
from typing import (
    Any,
    Dict,
    List,
)

from verdant.agent.context import ConversationContext
from verdant.core.schema import (
    ToolResult,
    ToolSpec,
)
from verdant.skills.base import BaseSkill
from verdant.world.garden import Garden
from verdant.world.state import GardenStateProvider

logger = logging.getLogger(__name__)

MIN_SIZE = 2
MAX_SIZE = 10

PLANT = ToolSpec(
    name="plant",
    description=(
        "Plant flowers in the first empty plot of the garden. "
        "If you do not know the available varieties, call list_varieties first."
    ),
    parameter_schema={
        "type": "object",
        "properties": {
            "varietyKey": {
                "type": "string",
                "description": "Catalog key of the variety, e.g. 粉花 or 小树. See list_varieties.",
            },
            "count": {
                "type": "number",
                "description": "How many to plant (default 1). They share one plot.",
            },
        },
        "required": ["varietyKey"],
    },
)

QUERY_GARDEN = ToolSpec(
    name="query_garden",
    description=(
        "Report how many flowers are planted, the total number of plots and how many are empty."
    ),
)

LIST_VARIETIES = ToolSpec(
    name="list_varieties",
    description="List every plantable variety with its key (used by plant), name and trait.",
)

RESIZE_GARDEN = ToolSpec(
    name="resize_garden",
    description="Grow or shrink the garden. Use for requests like 'make the garden 5x5'.",
    parameter_schema={
        "type": "object",
        "properties": {
            "cols": {"type": "number", "description": f"New column count, {MIN_SIZE}-{MAX_SIZE}"},
            "rows": {"type": "number", "description": f"New row count, {MIN_SIZE}-{MAX_SIZE}"},
        },
        "required": ["cols", "rows"],
    },
)


def _as_int(value: Any) -> int | None:
    """Integer value of *value*, accepting integral floats and numeric strings."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


class GardenSkill(BaseSkill):
    """Always-available garden management."""

    def __init__(self, garden: Garden, state_provider: GardenStateProvider | None = None):
        super().__init__("garden", "Garden management: planting, querying, resizing")
        self.garden = garden
        self.state_provider = state_provider or GardenStateProvider(garden)

    def get_tools(self, context: ConversationContext) -> List[ToolSpec]:
        return [PLANT, QUERY_GARDEN, LIST_VARIETIES, RESIZE_GARDEN]

    async def execute(
        self, tool_name: str, args: Dict[str, Any], context: ConversationContext
    ) -> ToolResult:
        if tool_name == "plant":
            return self._plant(args)
        if tool_name == "query_garden":
            return self._query()
        if tool_name == "list_varieties":
            return self._list_varieties()
        if tool_name == "resize_garden":
            return self._resize(args)
        return self.unknown_tool(tool_name)

    # ------------------------------------------------------------------ #
    # Tools
    # ------------------------------------------------------------------ #
    def _plant(self, args: Dict[str, Any]) -> ToolResult:
        key = args.get("varietyKey")
        if not key or not isinstance(key, str):
            return ToolResult(success=False, message="varietyKey is required")
        if key not in self.garden.catalog:
            return ToolResult(
                success=False,
                message=f'No variety called "{key}" was found. Use list_varieties to see options.',
            )

        count = _as_int(args.get("count", 1))
        if count is None or count < 1:
            return ToolResult(success=False, message="count must be a positive whole number")

        cell = self.garden.find_empty_cell()
        if cell is None:
            return ToolResult(
                success=False, message="The garden is full; there are no empty plots."
            )

        outcome = self.garden.plant(cell.col, cell.row, key, count)
        if not outcome.success:
            logger.warning("Planting %s failed: %s", key, outcome.message)
            return ToolResult(success=False, message=f"Planting failed: {outcome.message}")

        return ToolResult(
            success=True,
            message=f"Planted {count} {key} at plot ({cell.col + 1}, {cell.row + 1})",
            count=count,
            position={"col": cell.col, "row": cell.row},
            flower_ids=outcome.payload.get("flowers", []),
        )

    def _query(self) -> ToolResult:
        snapshot = self.state_provider.get_snapshot()
        total_cells = len(self.garden.grid)
        empty_cells = len(self.garden.empty_cells())
        return ToolResult(
            success=True,
            message=(
                f"The garden has {snapshot.summary.total} flowers in {total_cells} plots; "
                f"{empty_cells} plots are empty and {snapshot.summary.harvestable} flowers "
                "are ready to pick"
            ),
            planted_count=snapshot.summary.total,
            harvestable_count=snapshot.summary.harvestable,
            total_cells=total_cells,
            empty_cells=empty_cells,
        )

    def _list_varieties(self) -> ToolResult:
        varieties = self.state_provider.get_available_varieties()
        return ToolResult(
            success=True,
            message="Plantable varieties: " + ", ".join(v.key for v in varieties),
            varieties=[v.model_dump() for v in varieties],
        )

    def _resize(self, args: Dict[str, Any]) -> ToolResult:
        cols = _as_int(args.get("cols"))
        rows = _as_int(args.get("rows"))
        if (
            cols is None
            or rows is None
            or not MIN_SIZE <= cols <= MAX_SIZE
            or not MIN_SIZE <= rows <= MAX_SIZE
        ):
            return ToolResult(
                success=False,
                message=(
                    f"Invalid garden size: cols and rows must be between {MIN_SIZE} and {MAX_SIZE}"
                ),
            )

        outcome = self.garden.resize(cols, rows)
        if not outcome.success:
            return ToolResult(success=False, message=f"Resizing failed: {outcome.message}")
        return ToolResult(
            success=True,
            message=(
                f"The garden is now {cols} x {rows}; "
                f"{outcome.payload['preserved_count']} flowers were kept"
            ),
            **outcome.payload,
        )
