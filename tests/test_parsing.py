"""Tests for best-effort parsing of raw backend responses."""

import json

from verdant.backends.parsing import parse_model_output


def test_hosted_envelope_with_text_and_function_call() -> None:
    raw = {
        "output": [
            {"type": "message", "content": [{"type": "output_text", "text": "Planting!"}]},
            {"type": "function_call", "name": "plant", "arguments": '{"varietyKey": "粉花"}'},
        ]
    }
    parsed = parse_model_output(raw)

    assert parsed.text == "Planting!"
    assert [(c.name, c.arguments) for c in parsed.tool_calls] == [("plant", {"varietyKey": "粉花"})]


def test_item_list_with_tool_use_input() -> None:
    raw = [
        {"type": "text", "text": "One"},
        {"type": "tool_use", "id": "t1", "name": "query_garden", "input": {}},
        {"type": "text", "text": "Two"},
    ]
    parsed = parse_model_output(raw)

    assert parsed.text == "One\nTwo"
    assert [c.name for c in parsed.tool_calls] == ["query_garden"]


def test_result_object() -> None:
    assert parse_model_output({"result": "hello there"}).text == "hello there"


def test_content_list_and_scalar_content() -> None:
    listed = parse_model_output(
        {"content": [{"type": "text", "text": "hi"}, {"type": "tool_use", "name": "harvest"}]}
    )
    assert listed.text == "hi"
    assert [c.name for c in listed.tool_calls] == ["harvest"]

    assert parse_model_output({"content": 42}).text == "42"


def test_json_string_is_decoded() -> None:
    raw = json.dumps({"result": 'Done ```action {"action": "query_garden"} ```'})
    parsed = parse_model_output(raw)

    assert parsed.text == "Done"
    assert [c.name for c in parsed.tool_calls] == ["query_garden"]


def test_plain_string_and_broken_json_string_are_text() -> None:
    assert parse_model_output("just words").text == "just words"
    assert parse_model_output("{broken").text == "{broken"


def test_unknown_shape_becomes_literal_text() -> None:
    parsed = parse_model_output({"weird": True})

    assert parsed.text == '{"weird": true}'
    assert parsed.tool_calls == []


def test_unusable_tool_calls_are_dropped() -> None:
    raw = {
        "output": [
            {"type": "function_call", "name": "plant", "arguments": "{oops"},
            {"type": "function_call", "arguments": "{}"},
            {"type": "function_call", "name": "query_garden", "arguments": ""},
        ]
    }
    parsed = parse_model_output(raw)

    assert [(c.name, c.arguments) for c in parsed.tool_calls] == [("query_garden", {})]


def test_structured_calls_come_before_recovered_ones() -> None:
    raw = {
        "output": [
            {
                "type": "message",
                "content": [{"type": "output_text", "text": '```action {"action": "harvest"} ```'}],
            },
            {"type": "function_call", "name": "plant", "arguments": '{"varietyKey": "红花"}'},
        ]
    }
    parsed = parse_model_output(raw)

    assert [c.name for c in parsed.tool_calls] == ["plant", "harvest"]
    assert parsed.text == ""


def test_none_is_never_an_error() -> None:
    parsed = parse_model_output(None)

    assert parsed.tool_calls == []
    assert parsed.text == "null"


def test_list_of_unrecognised_items_becomes_literal_text() -> None:
    parsed = parse_model_output([{"kind": "mystery"}, 42])

    assert parsed.text == '[{"kind": "mystery"}, 42]'
    assert parsed.tool_calls == []
    assert parse_model_output([]).text == ""
