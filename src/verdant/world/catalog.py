"""
Variety catalog for the headless garden.

Each entry is keyed by its canonical catalog key, the value every ``plant`` call must use.  The
``agent`` block describes the persona a flower of that variety takes on when it is focused.
"""

from typing import (
    Any,
    Dict,
    Mapping,
)

VarietyCatalog = Mapping[str, Mapping[str, Any]]

DEFAULT_CATALOG: Dict[str, Dict[str, Any]] = {
    "粉花": {
        "agent": {
            "name": "Rosie",
            "personality": "gentle and sweet",
            "harvestRule": "say something romantic",
            "greeting": "Oh, hello there! Say something sweet to me?",
        }
    },
    "紫花": {
        "agent": {
            "name": "Violet",
            "personality": "mysterious and elegant",
            "harvestRule": "recite a line of classical poetry",
        }
    },
    "红花": {
        "agent": {
            "name": "Scarlet",
            "personality": "fiery and passionate",
            "harvestRule": "name a challenge you recently overcame",
        }
    },
    "黄花": {
        "agent": {
            "name": "Sunny",
            "personality": "bright and cheerful",
            "harvestRule": "tell a joke",
            "greeting": "Hi hi! Got a joke for me?",
            "harvestSuccess": "Ha! That was a good one. I'm yours!",
        }
    },
    "蓝花": {
        "agent": {
            "name": "Azure",
            "personality": "calm and steady",
            "harvestRule": "share a lesson life has taught you",
        }
    },
    "秋花": {
        "agent": {
            "name": "Amber",
            "personality": "nostalgic and warm",
            "harvestRule": "share a childhood memory",
        }
    },
    "花朵1": {
        "agent": {
            "name": "Daisy",
            "personality": "lively and outgoing",
            "harvestRule": "name your favourite colour",
        }
    },
    "小树": {
        "agent": {
            "name": "Sapling",
            "personality": "steady and dependable",
            "harvestRule": "name three kinds of tree",
        }
    },
    "粉树": {
        "agent": {
            "name": "Sakura",
            "personality": "romantic and tender",
            "harvestRule": "describe the spring in your heart",
        }
    },
}


def agent_profile(catalog: VarietyCatalog, key: str) -> Mapping[str, Any]:
    """Return the persona block for *key*, or an empty mapping."""
    entry = catalog.get(key) or {}
    return entry.get("agent") or {}


def display_name(catalog: VarietyCatalog, key: str) -> str:
    """Human-readable name of a variety, falling back to its key."""
    return str(agent_profile(catalog, key).get("name") or key)
