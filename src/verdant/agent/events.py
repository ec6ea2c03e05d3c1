"""Interaction events: one user gesture on one resolved entity."""

import time
from typing import (
    Any,
    Dict,
    Optional,
)

from pydantic import (
    BaseModel,
    Field,
)

from verdant.core.schema import FocusedEntity
from verdant.world.entities import (
    EntityDescriptor,
    InteractionDefinition,
)

TYPE_LABELS = {
    "click": "clicked",
    "dblclick": "double-clicked",
    "drag": "dragged",
    "contextmenu": "right-clicked",
}


class InteractionEvent(BaseModel):
    """
    A gesture on an entity, together with the descriptor the agent sees it through.

    Attributes
    ----------
    type : str
        Interaction type (``click``, ``dblclick``, ``drag``, ``contextmenu``...).
    entity : Dict[str, Any]
        Raw entity data from the resolver; must carry an ``id``.
    entity_type : str
        Resolver type key, e.g. ``flower``.
    descriptor : EntityDescriptor
        Name, description and per-interaction definitions.
    """

    type: str
    entity: Dict[str, Any]
    entity_type: str
    descriptor: EntityDescriptor
    position: Dict[str, float] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)

    @property
    def entity_id(self) -> str:
        return str(self.entity.get("id", ""))

    def definition(self) -> Optional[InteractionDefinition]:
        return self.descriptor.interactions.get(self.type)

    def type_label(self) -> str:
        return TYPE_LABELS.get(self.type, self.type)

    def is_valid(self) -> bool:
        """An interaction is valid when the descriptor defines it for this entity."""
        return self.definition() is not None

    def to_agent_input(self) -> str:
        """Render the event as the text the agent reads."""
        headline = f"The user {self.type_label()} {self.descriptor.name}."
        definition = self.definition()
        if definition is None:
            return headline

        parts = [headline, f"Entity description: {self.descriptor.description}"]
        if definition.action:
            parts.append(f"Interaction: {definition.action}")
        if definition.condition:
            parts.append(f"Condition: {definition.condition}")
        if definition.description:
            parts.append(f"Details: {definition.description}")
        return "\n".join(parts)

    def user_prompt(self) -> str:
        """Short text shown to the user for this gesture."""
        definition = self.definition()
        if definition is not None and definition.user_prompt:
            return definition.user_prompt
        return f"You {self.type_label()} {self.descriptor.name}"

    def focused_entity(self) -> FocusedEntity:
        return FocusedEntity(
            id=self.entity_id,
            type=self.entity_type,
            name=self.descriptor.name,
            description=self.descriptor.description,
            state=dict(self.entity),
            custom_data=dict(self.descriptor.custom_data),
        )
