"""Harvesting skill: pick a mature flower by id or by current focus."""

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

logger = logging.getLogger(__name__)

HARVESTABLE_TYPE = "flower"

HARVEST = ToolSpec(
    name="harvest",
    description=(
        "Pick a mature flower. Only call this once the user has met the flower's harvest rule."
    ),
    parameter_schema={
        "type": "object",
        "properties": {
            "reason": {
                "type": "string",
                "description": (
                    "What the user did to meet the harvest rule (a joke, a compliment, a poem...)."
                ),
            },
            "flowerId": {
                "type": "string",
                "description": (
                    "Optional id of the flower to pick (e.g. flower_ab12). "
                    "Defaults to the focused flower."
                ),
            },
        },
        "required": ["reason"],
    },
)


def _focused_flower_ready(context: ConversationContext) -> bool:
    entity = context.focused_entity
    return (
        entity is not None
        and entity.type == HARVESTABLE_TYPE
        and bool(entity.state.get("is_harvestable"))
    )


def _any_flower_ready(context: ConversationContext) -> bool:
    snapshot = context.world_snapshot
    return snapshot is not None and snapshot.summary.harvestable > 0


class HarvestSkill(BaseSkill):
    """Offers ``harvest`` while a mature flower is focused or anywhere in the garden."""

    def __init__(self, garden: Garden):
        super().__init__("harvest", "Picking mature flowers")
        self.garden = garden

    def is_available(self, context: ConversationContext) -> bool:
        focused = context.focused_entity
        return (focused is not None and focused.type == HARVESTABLE_TYPE) or _any_flower_ready(
            context
        )

    def get_tools(self, context: ConversationContext) -> List[ToolSpec]:
        if _focused_flower_ready(context) or _any_flower_ready(context):
            return [HARVEST]
        return []

    async def execute(
        self, tool_name: str, args: Dict[str, Any], context: ConversationContext
    ) -> ToolResult:
        if tool_name != "harvest":
            return self.unknown_tool(tool_name)

        flower_id = args.get("flowerId")
        entity = context.focused_entity
        if not flower_id:
            if entity is None:
                return ToolResult(success=False, message="No flower is selected")
            if entity.type != HARVESTABLE_TYPE:
                return ToolResult(success=False, message=f"{entity.name} cannot be harvested")
            flower_id = entity.id

        flower = self.garden.get_flower(str(flower_id))
        if flower is None:
            return ToolResult(success=False, message=f"Flower {flower_id} was not found")
        if not self.garden.is_harvestable(flower):
            return ToolResult(
                success=False,
                message=(
                    f"Flower {flower_id} is not mature yet "
                    f"({self.garden.growth_percent(flower)}% grown)"
                ),
            )

        outcome = self.garden.harvest(flower.id)
        if not outcome.success:
            logger.warning("Harvest of %s failed: %s", flower.id, outcome.message)
            return ToolResult(success=False, message=f"Harvest failed: {outcome.message}")

        gold = outcome.payload["gold"]
        custom_message = None
        if entity is not None and entity.id == flower.id:
            custom_message = entity.custom_data.get("harvest_success")
            context.clear_focused_entity()
        context.update_world_overlay({"gold": self.garden.gold})

        return ToolResult(
            success=True,
            message=custom_message or f"Harvested successfully and earned {gold} gold",
            gold=gold,
            flowers=outcome.payload["count"],
            flower_id=flower.id,
            reason=args.get("reason"),
        )
