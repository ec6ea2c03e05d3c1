"""
Entity descriptors and resolvers.

A resolver turns a UI-level target reference (for the headless garden: a flower id) into raw
entity data; a descriptor turns that data into the name, description and per-interaction
definitions the agent sees.
"""

import logging
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.world.catalog import agent_profile
from verdant.world.garden import Garden

logger = logging.getLogger(__name__)

Resolver = Callable[[Any], Optional[Dict[str, Any]]]


class InteractionDefinition(BaseModel):
    """How one interaction type on an entity is presented to the agent and the user."""

    action: str
    description: str = ""
    condition: Optional[str] = None
    user_prompt: Optional[str] = None


class EntityDescriptor(BaseModel):
    type: str
    name: str
    description: str = ""
    interactions: Dict[str, Optional[InteractionDefinition]] = Field(default_factory=dict)
    custom_data: Dict[str, Any] = Field(default_factory=dict)


class FlowerDescriptor:
    """Describes flower entity data produced by :meth:`EntityResolver.resolve`."""

    entity_type = "flower"

    def __init__(self, garden: Garden):
        self.garden = garden

    def describe(self, flower: Dict[str, Any]) -> EntityDescriptor:
        agent = agent_profile(self.garden.catalog, flower.get("variety_key", ""))
        name = agent.get("name") or flower.get("variety_key") or "unknown flower"
        mature = bool(flower.get("is_harvestable"))
        personality = agent.get("personality") or ""

        description = f'A flower named "{name}". Status: {"mature" if mature else "growing"}.'
        if personality:
            description += f" Personality: {personality}."

        return EntityDescriptor(
            type=self.entity_type,
            name=name,
            description=description,
            interactions=self._interactions(mature, agent),
            custom_data={
                "personality": agent.get("personality"),
                "harvest_rule": agent.get("harvestRule"),
                "greeting": agent.get("greeting"),
                "harvest_success": agent.get("harvestSuccess"),
                "variety_key": flower.get("variety_key"),
            },
        )

    @staticmethod
    def _interactions(
        mature: bool, agent: Dict[str, Any]
    ) -> Dict[str, Optional[InteractionDefinition]]:
        growing = InteractionDefinition(
            condition="while growing",
            action="inspect",
            description="The flower is still growing; its status can be checked.",
            user_prompt="This flower is still growing...",
        )
        rule = agent.get("harvestRule")
        greeting = agent.get("greeting")
        click = (
            InteractionDefinition(
                condition="when mature",
                action="try to pick",
                description=f"Harvest rule: {rule}" if rule else "You may try to pick this flower.",
                user_prompt=greeting or "Click to talk to the flower",
            )
            if mature
            else growing
        )
        return {
            "click": click,
            "click_growing": growing,
            "plant": InteractionDefinition(
                action="plant",
                description="This flower was just planted and needs time to grow.",
                user_prompt="A new flower was planted!",
            ),
            "dblclick": InteractionDefinition(
                action="quick look",
                description="Take a quick look at the flower's details.",
                user_prompt="Viewing flower info",
            ),
            "contextmenu": (
                InteractionDefinition(
                    action="ask for a hint",
                    description="Ask how this flower can be picked.",
                    user_prompt="Viewing the harvest hint",
                )
                if mature
                else None
            ),
            "drag": None,
        }


class EntityResolver:
    """
    Maps target references to ``(entity_type, entity_data)`` and describes them.

    Resolvers are tried in registration order; the first non-empty match wins.
    """

    def __init__(self) -> None:
        self._resolvers: List[Tuple[str, Resolver]] = []
        self._descriptors: Dict[str, Any] = {}

    def register(self, entity_type: str, resolver: Resolver, descriptor: Any) -> None:
        self._resolvers.append((entity_type, resolver))
        self._descriptors[entity_type] = descriptor

    def resolve(self, target: Any) -> Optional[Tuple[str, Dict[str, Any]]]:
        for entity_type, resolver in self._resolvers:
            data = resolver(target)
            if data:
                return entity_type, data
        return None

    def describe(self, entity_type: str, data: Dict[str, Any]) -> Optional[EntityDescriptor]:
        descriptor = self._descriptors.get(entity_type)
        if descriptor is None:
            logger.warning("No descriptor registered for entity type '%s'", entity_type)
            return None
        return descriptor.describe(data)


def flower_resolver(garden: Garden) -> Resolver:
    """Resolver for flower ids in *garden*."""

    def resolve(target: Any) -> Optional[Dict[str, Any]]:
        flower = garden.get_flower(str(target))
        if flower is None:
            return None
        data = flower.model_dump()
        data["is_harvestable"] = garden.is_harvestable(flower)
        data["growth_percent"] = garden.growth_percent(flower)
        return data

    return resolve


def garden_entity_resolver(garden: Garden) -> EntityResolver:
    """An :class:`EntityResolver` wired for the flowers of *garden*."""
    resolver = EntityResolver()
    resolver.register("flower", flower_resolver(garden), FlowerDescriptor(garden))
    return resolver
