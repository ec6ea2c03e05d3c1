"""System prompt construction from context and the turn's tool list."""

from typing import (
    List,
    Optional,
    Sequence,
)

from pydantic import BaseModel

from verdant.agent import prompts
from verdant.agent.context import ConversationContext
from verdant.core.schema import ToolSpec
from verdant.world.render import describe_cells


class AgentConfig(BaseModel):
    """Persona of the garden agent."""

    name: str
    personality: str = ""


class PromptBuilder:
    """
    Builds the system prompt from five sections: identity, world overview, current context,
    tools and behaviour rules.  Sections with nothing to say are left out.
    """

    def __init__(self, config: AgentConfig):
        self.config = config

    def build(self, context: ConversationContext, tools: Sequence[ToolSpec]) -> str:
        sections = [
            self.identity_section(),
            self.world_section(context),
            self.context_section(context),
            self.tools_section(tools),
            self.behavior_section(),
        ]
        return "\n\n".join(s for s in sections if s)

    def identity_section(self) -> str:
        return "\n".join(
            [
                prompts.IDENTITY_TITLE,
                prompts.IDENTITY_TEMPLATE.format(name=self.config.name),
                "",
                prompts.PERSONALITY_TITLE,
                self.config.personality,
            ]
        )

    def world_section(self, context: ConversationContext) -> Optional[str]:
        snapshot = context.world_snapshot
        if snapshot is None:
            return None
        parts = [prompts.WORLD_TITLE, prompts.WORLD_GOLD.format(gold=snapshot.gold)]
        if snapshot.cells:
            parts.append("")
            parts.append(prompts.WORLD_FLOWERS_TITLE)
            cells = {
                key: [f.model_dump() for f in flowers] for key, flowers in snapshot.cells.items()
            }
            parts.extend(f"- {line}" for line in describe_cells(cells))
        parts.append("")
        parts.append(prompts.WORLD_SUMMARY.format(**snapshot.summary.model_dump()))
        return "\n".join(parts)

    def context_section(self, context: ConversationContext) -> str:
        overlay = context.world_overlay
        parts: List[str] = [
            prompts.CONTEXT_TITLE,
            prompts.CONTEXT_GOLD.format(gold=overlay.get("gold") or 0),
        ]
        if overlay.get("flower_count") is not None:
            parts.append(prompts.CONTEXT_FLOWER_COUNT.format(count=overlay["flower_count"]))

        entity = context.focused_entity
        if entity is not None:
            parts.append("")
            parts.append(prompts.FOCUS_TITLE)
            parts.append(prompts.FOCUS_NAME.format(name=entity.name))
            parts.append(prompts.FOCUS_TYPE.format(type=entity.type))
            parts.append(prompts.FOCUS_DESCRIPTION.format(description=entity.description))

            rule = entity.custom_data.get("harvest_rule")
            if rule:
                parts.append("")
                parts.append(prompts.HARVEST_RULE_TITLE)
                parts.append(prompts.HARVEST_RULE_TEMPLATE.format(rule=rule))
            personality = entity.custom_data.get("personality")
            if personality:
                parts.append("")
                parts.append(prompts.FLOWER_PERSONALITY_TITLE)
                parts.append(personality)

        return "\n".join(parts)

    def tools_section(self, tools: Sequence[ToolSpec]) -> str:
        if not tools:
            return f"{prompts.TOOLS_TITLE}\n{prompts.NO_TOOLS}"
        listing = "\n".join(f"- {tool.name}: {tool.description}" for tool in tools)
        return f"{prompts.TOOLS_TITLE}\n{listing}\n\n{prompts.TOOLS_REMINDER}"

    def behavior_section(self) -> str:
        rules = "\n".join(f"{i}. {rule}" for i, rule in enumerate(prompts.BEHAVIOR_RULES, 1))
        return f"{prompts.BEHAVIOR_TITLE}\n{rules}"
