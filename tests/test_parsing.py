import json

import pytest

from content_agent.agent_core.engine.parsing import (
    NO_CHANGES_SUMMARY,
    TRUNCATION_NOTE,
    extract_json,
    mark_truncated,
    normalize_final,
    parse_json_object,
    synthesize_summary,
    tool_calls_of,
)


def test_extract_json_prefers_fenced_block():
    text = 'prefix {"a": 1}\n```json\n{"b": 2}\n```'
    assert json.loads(extract_json(text)) == {"b": 2}


def test_extract_json_falls_back_to_greedy_object_then_raw_text():
    assert extract_json('Here: {"a": {"b": 1}} done') == '{"a": {"b": 1}}'
    assert extract_json("no json here") == "no json here"


@pytest.mark.parametrize("text", ["not json", "[1, 2, 3]", '{"a": }', ""])
def test_parse_json_object_rejects_non_objects(text):
    assert parse_json_object(text) is None


def test_tool_calls_of_requires_a_list():
    assert tool_calls_of({"tool_calls": [{"tool": "x"}]}) == [{"tool": "x"}]
    assert tool_calls_of({"tool_calls": "x"}) == []
    assert tool_calls_of({"tool_calls": []}) == []
    assert tool_calls_of(None) == []


def test_mark_truncated_appends_note():
    marked = json.loads(mark_truncated('{"summary": "Halfway", "tool_calls": [{"tool": "x"}]}'))
    assert marked["summary"] == "Halfway" + TRUNCATION_NOTE
    assert mark_truncated("plain text") == "plain text"
    assert mark_truncated('{"summary": "done"}') == '{"summary": "done"}'


def test_mark_truncated_without_summary():
    marked = json.loads(mark_truncated('{"tool_calls": [{"tool": "x"}]}'))
    assert marked["summary"] == TRUNCATION_NOTE


def test_normalize_moves_top_level_post_fields():
    data = normalize_final('{"metaTitle": "M", "modules": [], "summary": "s"}')
    assert data == {"post": {"metaTitle": "M"}, "modules": [], "summary": "s"}


def test_normalize_keeps_explicit_post_object():
    data = normalize_final('{"post": {"title": "T"}, "redirectPostId": "p1"}')
    assert data == {"post": {"title": "T"}, "redirectPostId": "p1"}


def test_normalize_unwraps_json_in_content():
    inner = json.dumps({"post": {"excerpt": "E"}, "summary": "inner"})
    data = normalize_final(json.dumps({"content": inner}))
    assert data == {"post": {"excerpt": "E"}, "summary": "inner"}


def test_normalize_unparseable_text():
    assert normalize_final("just words") == {"content": "just words"}


def test_synthesize_summary_prefers_leading_prose():
    raw = 'I tightened the introduction and fixed typos. {"post": {"title": "T"}}'
    assert synthesize_summary(raw, {"post": {"title": "T"}}) == "I tightened the introduction and fixed typos."


def test_synthesize_summary_counts_changes():
    data = {"post": {"title": "T", "slug": "t"}, "modules": [{}, {}, {}]}
    assert synthesize_summary('{"x": 1}', data) == "Updated 2 post field(s). Updated 3 module(s)."
    assert synthesize_summary("short", {}) == NO_CHANGES_SUMMARY
