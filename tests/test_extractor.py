"""Tests for recovering JSON from model replies."""

import pytest

from tipjar.exceptions import MalformedModelOutput
from tipjar.extractor import (
    extract_json,
    extract_object,
    parse_braced,
    parse_direct,
    parse_fenced,
)

PAYLOAD = {"category": "Travel", "priority": 7, "tags": ["food", "tokyo"]}
BARE = '{"category": "Travel", "priority": 7, "tags": ["food", "tokyo"]}'


class TestStrategies:
    def test_direct_parses_bare_json(self):
        assert parse_direct(BARE) == PAYLOAD
        assert parse_direct(f"  \n{BARE}\n ") == PAYLOAD

    def test_direct_rejects_wrapped_json(self):
        assert parse_direct(f"```json\n{BARE}\n```") is None

    def test_fenced_handles_labelled_and_unlabelled_fences(self):
        assert parse_fenced(f"```json\n{BARE}\n```") == PAYLOAD
        assert parse_fenced(f"```\n{BARE}\n```") == PAYLOAD
        assert parse_fenced(f"```JSON {BARE}```") == PAYLOAD

    def test_fenced_skips_blocks_that_are_not_json(self):
        text = f"```python\nprint('hi')\n```\nand\n```json\n{BARE}\n```"
        assert parse_fenced(text) == PAYLOAD

    def test_braced_finds_object_inside_prose(self):
        assert parse_braced(f"Sure! Here is the result: {BARE} Hope that helps.") == PAYLOAD

    def test_braced_without_braces(self):
        assert parse_braced("no json here") is None
        assert parse_braced("} backwards {") is None


class TestExtractJson:
    @pytest.mark.parametrize(
        "raw",
        [
            BARE,
            f"```json\n{BARE}\n```",
            f"```\n{BARE}\n```",
            f"Here is the JSON you asked for:\n\n{BARE}\n\nLet me know if you need more.",
            f"Here you go:\n```json\n{BARE}\n```\nThanks!",
        ],
        ids=["bare", "json-fence", "plain-fence", "prose", "prose-and-fence"],
    )
    def test_same_value_as_bare_json(self, raw):
        assert extract_json(raw) == extract_json(BARE) == PAYLOAD

    def test_nested_objects_survive_brace_matching(self):
        raw = 'Result: {"tips": [{"content": "a", "meta": {"x": 1}}]} done'
        assert extract_json(raw) == {"tips": [{"content": "a", "meta": {"x": 1}}]}

    def test_pure_prose_fails(self):
        with pytest.raises(MalformedModelOutput):
            extract_json("I'm sorry, I can't categorize this tip.")

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_reply_fails(self, raw):
        with pytest.raises(MalformedModelOutput):
            extract_json(raw)

    def test_broken_json_fails(self):
        with pytest.raises(MalformedModelOutput):
            extract_json('{"category": "Travel", "priority": }')

    def test_json_null_is_not_success(self):
        with pytest.raises(MalformedModelOutput):
            extract_json("null")


class TestExtractObject:
    def test_returns_dict(self):
        assert extract_object(f"```json\n{BARE}\n```") == PAYLOAD

    def test_rejects_non_object(self):
        with pytest.raises(MalformedModelOutput, match="Expected a JSON object"):
            extract_object('["just", "a", "list"]')
