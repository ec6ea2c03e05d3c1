"""
Skills for Verdant.

A skill is a pluggable capability provider: it decides whether it is available in the current
conversation context, which tools it offers there, and how to execute them.
"""

from verdant.skills.base import BaseSkill
from verdant.skills.garden import GardenSkill
from verdant.skills.harvest import HarvestSkill
from verdant.skills.registry import SkillRegistry

__all__ = ["BaseSkill", "GardenSkill", "HarvestSkill", "SkillRegistry"]
