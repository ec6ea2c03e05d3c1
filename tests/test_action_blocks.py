"""
Tests for ```action``` block recovery.

Run with:
$ pytest -q
"""

from verdant.tools import (
    DEFAULT_HARVEST_REASON,
    extract_action_blocks,
    normalize_action_args,
    normalize_variety,
)


def test_good_block_recovered_and_bad_block_dropped() -> None:
    """A well-formed block becomes a canonical call; a malformed one vanishes silently."""

    text = (
        "Sure, planting now!\n"
        '```action\n{"action": "plant", "flower": {"color": "pink"}, "position": "left"}\n```\n'
        "And this one is broken:\n"
        "```action\n{not json at all\n```"
    )
    result = extract_action_blocks(text)

    assert len(result.tool_calls) == 1
    call = result.tool_calls[0]
    assert call.name == "plant"
    assert call.arguments == {"varietyKey": "粉花", "count": 1}
    assert "```" not in result.clean_text
    assert result.clean_text.startswith("Sure, planting now!")
    assert result.clean_text.endswith("And this one is broken:")


def test_text_without_blocks_is_unchanged() -> None:
    result = extract_action_blocks("  Just chatting.  ")

    assert result.clean_text == "Just chatting."
    assert result.tool_calls == []


def test_type_key_names_the_tool() -> None:
    result = extract_action_blocks('```action {"type": "query_garden"} ```')

    assert [c.name for c in result.tool_calls] == ["query_garden"]
    assert result.tool_calls[0].arguments == {}


def test_blocks_without_a_name_or_object_are_dropped() -> None:
    text = '```action {"count": 2} ``` ok ```action [1, 2] ```'
    result = extract_action_blocks(text)

    assert result.tool_calls == []
    assert result.clean_text == "ok"


def test_multiple_blocks_keep_order() -> None:
    text = (
        '```action {"action": "plant", "flowerType": "yellow", "count": 2} ```'
        '```action {"action": "harvest", "message": "knock knock"} ```'
    )
    calls = extract_action_blocks(text).tool_calls

    assert [c.name for c in calls] == ["plant", "harvest"]
    assert calls[0].arguments == {"varietyKey": "黄花", "count": 2}
    assert calls[1].arguments == {"reason": "knock knock"}


def test_plant_item_and_string_flower_variants() -> None:
    assert normalize_action_args("plant", {"item": "Blue"}) == {"varietyKey": "蓝花", "count": 1}
    assert normalize_action_args("plant", {"flower": "tree", "note": "x"}) == {
        "varietyKey": "小树",
        "count": 1,
    }


def test_explicit_zero_count_is_kept_for_the_skill_to_reject() -> None:
    assert normalize_action_args("plant", {"varietyKey": "red", "count": 0}) == {
        "varietyKey": "红花",
        "count": 0,
    }
    assert normalize_action_args("plant", {"varietyKey": "red", "count": None})["count"] == 1


def test_harvest_defaults_reason_and_drops_target() -> None:
    args = normalize_action_args("harvest", {"target": "flower_1"})

    assert args == {"reason": DEFAULT_HARVEST_REASON}


def test_other_tools_pass_through() -> None:
    assert normalize_action_args("resize_garden", {"cols": 4, "rows": 4}) == {"cols": 4, "rows": 4}


def test_normalize_variety() -> None:
    assert normalize_variety("PINK") == "粉花"
    assert normalize_variety("紫花") == "紫花"
    assert normalize_variety("moonflower") == "moonflower"
    assert normalize_variety(3) == 3
