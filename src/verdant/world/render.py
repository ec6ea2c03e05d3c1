"""Render garden state as prompt text for backends that receive it out of band."""

from typing import (
    Any,
    Iterable,
    List,
    Mapping,
)


def _cell_sort_key(key: str) -> tuple[int, int]:
    col, _, row = key.partition(",")
    try:
        return int(row), int(col)
    except ValueError:
        return (0, 0)


def describe_cells(cells: Mapping[str, Iterable[Mapping[str, Any]]]) -> List[str]:
    """One line per cell, row-major, e.g. ``cell(0,1): Sunny[flower_ab](harvestable)``."""
    lines = []
    for key in sorted(cells, key=_cell_sort_key):
        flowers = list(cells[key] or [])
        if not flowers:
            lines.append(f"cell({key}): (empty)")
            continue
        descs = []
        for flower in flowers:
            status = (
                "harvestable"
                if flower.get("is_harvestable")
                else f"growing {flower.get('growth_percent', 0)}%"
            )
            descs.append(f"{flower.get('name')}[{flower.get('id')}]({status})")
        lines.append(f"cell({key}): {', '.join(descs)}")
    return lines


def render_world_state(state: Mapping[str, Any]) -> str:
    """
    Render a pushed bridge state as text.

    Recognised keys: ``gold``, ``focused_entity``, ``world_snapshot`` and
    ``available_varieties``; all are optional.
    """
    lines = ["# Garden state", f"Gold: {state.get('gold') or 0}", ""]

    focused = state.get("focused_entity")
    if focused:
        custom = focused.get("custom_data") or {}
        lines.append("## Current focus")
        lines.append(f"Name: {focused.get('name') or 'unknown'}")
        lines.append(f"Type: {focused.get('type') or 'unknown'}")
        if focused.get("description"):
            lines.append(f"Description: {focused['description']}")
        if custom.get("harvest_rule"):
            lines += ["", "## Harvest rule"]
            lines.append(f"It may only be picked once the user does this: {custom['harvest_rule']}")
        if custom.get("personality"):
            lines += ["", f"### Personality: {custom['personality']}"]
        if custom.get("greeting"):
            lines.append(f"### Greeting: {custom['greeting']}")
        lines.append("")

    snapshot = state.get("world_snapshot") or {}
    if snapshot.get("cells"):
        lines.append("## Flowers")
        lines += describe_cells(snapshot["cells"])
        lines.append("")
        summary = snapshot.get("summary")
        if summary:
            lines.append(
                f"Totals: {summary.get('total', 0)} flowers, "
                f"{summary.get('harvestable', 0)} harvestable, "
                f"{summary.get('growing', 0)} growing"
            )
            lines.append("")

    varieties = state.get("available_varieties") or []
    if varieties:
        lines.append("## Plantable varieties")
        for variety in varieties:
            trait = f" - {variety['trait']}" if variety.get("trait") else ""
            name = variety.get("display_name") or variety["key"]
            lines.append(f"- {variety['key']}: {name}{trait}")
        lines.append("")

    return "\n".join(lines)
