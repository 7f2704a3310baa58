import json

import pytest

from lowdeep.domain.exceptions import EmptyInputError, NoJsonFoundError
from lowdeep.parsing import ScanState, extract_json, find_json_fragments, sanitize, scan_balanced, scan_fragment
from lowdeep.parsing.scanner import step


# ---- sanitize ----


def test_sanitize_strips_reasoning_and_fences():
    raw = '<think>\nuser wants {"a": 1}?\n</think>\n```json\n{"name": "Alice"}\n```\n'
    assert sanitize(raw) == '{"name": "Alice"}'


def test_sanitize_reasoning_case_insensitive_and_multiple_pairs():
    raw = '<THINK>one</Think>{"a": 1}<think>two\nlines</think>'
    assert sanitize(raw) == '{"a": 1}'


def test_sanitize_nested_reasoning():
    raw = "<think>outer <think>inner</think> tail</think>[1, 2]"
    assert sanitize(raw) == "[1, 2]"


def test_sanitize_plain_fence_keeps_content():
    assert sanitize("```\n[1]\n```") == "[1]"


def test_sanitize_empty_and_markup_only():
    assert sanitize("") == ""
    assert sanitize("   ") == ""
    assert sanitize("<think>only thoughts</think>\n```json\n```") == ""


def test_sanitize_keeps_unpaired_tags_inside_values():
    raw = '{"note": "wrap it in <think> tags", "end": "</reasoning>"}'
    assert sanitize(raw) == raw
    assert extract_json(sanitize(raw)) == {"note": "wrap it in <think> tags", "end": "</reasoning>"}


def test_sanitize_is_idempotent():
    samples = [
        '<think>a</think> ```json {"x": "```"} ``` trailing',
        "<thi```nk>hidden</think>{}",
        "  <think>x</think>  <think>y</think>  ",
        'I think the answer is {"name": "Alice"}',
    ]
    for raw in samples:
        once = sanitize(raw)
        assert sanitize(once) == once


# ---- scanner ----


def test_scan_ignores_braces_inside_strings():
    text = '{"a": "}"}"'
    assert scan_balanced(text, 0) == '{"a": "}"}'


def test_scan_handles_escaped_quotes():
    text = r'{"a": "say \"}\" now", "b": [1]} tail'
    assert json.loads(scan_balanced(text, 0)) == {"a": 'say "}" now', "b": [1]}


def test_scan_stops_at_true_end_and_ignores_trailing_prose():
    text = 'xx [1, {"k": [2]}] and then {"other": 1}'
    assert scan_balanced(text, 3) == '[1, {"k": [2]}]'


def test_scan_rejects_mismatched_nesting():
    assert scan_balanced('{"a": [1, 2}', 0) is None
    assert scan_balanced("{...]", 0) is None


def test_scan_unterminated_returns_none():
    assert scan_balanced('{"a": {"b": 1}', 0) is None
    assert scan_balanced('{"a": "unterminated}', 0) is None


def test_scan_requires_open_bracket_at_start():
    assert scan_balanced('x{"a": 1}', 0) is None
    assert scan_balanced("{}", 5) is None


def test_scan_fragment_reports_openers_that_cannot_close():
    assert scan_fragment("{[{", 0) == (None, [1, 2])
    assert scan_fragment('{"a": [1, {"b": 2]', 0) == (None, [6, 10])
    assert scan_fragment('{"a": {"b": 1}', 0) == (None, [])
    assert scan_fragment("[1] x", 0) == ("[1]", [])


def test_scan_state_transitions():
    assert step(ScanState.NORMAL, '"') is ScanState.IN_STRING
    assert step(ScanState.IN_STRING, "\\") is ScanState.ESCAPED
    assert step(ScanState.ESCAPED, '"') is ScanState.IN_STRING
    assert step(ScanState.IN_STRING, '"') is ScanState.NORMAL
    assert step(ScanState.IN_STRING, "}") is ScanState.IN_STRING


# ---- extract ----


def test_extract_fast_path():
    assert extract_json('{"a": [1, 2]}') == {"a": [1, 2]}
    assert extract_json("[1, 2]") == [1, 2]


def test_extract_from_prose():
    assert extract_json('I think the answer is {"name": "Alice", "age": "thirty"}') == {
        "name": "Alice",
        "age": "thirty",
    }


def test_extract_two_objects_in_order():
    text = 'Step one: {"step": 1} and after some thought: {"step": 2}. Done.'
    assert extract_json(text) == [{"step": 1}, {"step": 2}]


def test_extract_skips_balanced_but_invalid_fragment():
    text = 'see [note {"a": 1}] and {name}'
    assert extract_json(text) == {"a": 1}


def test_extract_skips_malformed_nesting_and_continues():
    text = '{"broken": ] then {"ok": true}'
    assert extract_json(text) == {"ok": True}


def test_extract_no_json():
    with pytest.raises(NoJsonFoundError):
        extract_json("no structured data here at all")


def test_extract_empty_input():
    with pytest.raises(EmptyInputError):
        extract_json("")
    with pytest.raises(EmptyInputError):
        extract_json("  \n ")


def test_sanitize_then_extract_returns_object_unchanged():
    payload = {"name": "Alice", "tags": ["x", "}"], "nested": {"k": None}}
    raw = f"<think>let me see</think>\nSure!\n```json\n{json.dumps(payload)}\n```\nAnything else?"
    assert extract_json(sanitize(raw)) == payload


def test_find_fragments_returns_all_values():
    assert find_json_fragments('[1] {"a": 2} [3]') == [[1], {"a": 2}, [3]]


def test_extract_finds_inner_object_of_unterminated_outer():
    assert extract_json('{"a": {"b": 1}') == {"b": 1}


def test_extract_many_unclosed_openers():
    with pytest.raises(NoJsonFoundError):
        extract_json("{" * 20000)
    assert extract_json("[" * 20000 + ' {"ok": 1}') == {"ok": 1}


def test_extract_too_deep_nesting_is_a_parse_failure():
    deep = "[" * 200000 + "]" * 200000
    with pytest.raises(NoJsonFoundError):
        extract_json(deep)
    assert extract_json(deep + ' then {"ok": true}') == {"ok": True}
