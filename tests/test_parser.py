"""
==============================================================================
Scan Parser Tests
==============================================================================
"""

import pytest

from app.scanner.parser import ScanParser, parse_scan


@pytest.fixture
def parser() -> ScanParser:
    return ScanParser()


class TestStructuredPayloads:
    """Tests for well-formed JSON objects."""

    def test_all_fields_preserved(self, parser: ScanParser):
        """Test all fields preserved."""
        item = parser.parse(
            '{"name":"UltraSeal","batch":"B1","bag":"BG1","id":"P1","qty":"5KG"}'
        )
        assert item.name == "UltraSeal"
        assert item.batch == "B1"
        assert item.bag == "BG1"
        assert item.id == "P1"
        assert item.qty == "5KG"
        assert item.temp_id is None

    def test_missing_keys_become_empty(self, parser: ScanParser):
        """Test missing keys become empty."""
        item = parser.parse('{"name": "UltraSeal", "id": "P1"}')
        assert item.name == "UltraSeal"
        assert item.id == "P1"
        assert item.batch == ""
        assert item.bag == ""
        assert item.qty == ""

    def test_extra_keys_ignored(self, parser: ScanParser):
        """Test extra keys ignored."""
        item = parser.parse('{"name": "A", "id": "1", "colour": "red"}')
        assert not hasattr(item, "colour")

    def test_non_string_values_keep_json_spelling(self, parser: ScanParser):
        """Test numbers and booleans keep their JSON spelling."""
        item = parser.parse('{"name": "A", "id": 42, "qty": 2.5, "bag": true}')
        assert item.id == "42"
        assert item.qty == "2.5"
        assert item.bag == "true"

    def test_nested_values_keep_json_spelling(self, parser: ScanParser):
        """Test booleans, lists and objects are stored as their JSON text."""
        item = parser.parse(
            '{"name": false, "batch": [1, 2], "qty": {"kg": 5}, "id": "P1"}'
        )
        assert item.name == "false"
        assert item.batch == "[1, 2]"
        assert item.qty == '{"kg": 5}'
        assert item.id == "P1"

    def test_null_value_is_empty(self, parser: ScanParser):
        """Test null value is empty."""
        assert parser.parse('{"name": null}').name == ""


class TestFallback:
    """Tests for malformed input."""

    def test_garbage_uses_placeholder(self, parser: ScanParser):
        """Test garbage uses placeholder."""
        item = parser.parse("not-json-garbage")
        assert item.name == "Unknown Item"
        assert item.batch == "N/A"
        assert item.bag == "N/A"
        assert item.id == "not-json-garbage"
        assert item.qty == "1"

    @pytest.mark.parametrize("text", ["[1, 2, 3]", '"just a string"', "17", "null"])
    def test_non_object_json_uses_placeholder(self, parser: ScanParser, text: str):
        """Test JSON that is not an object uses the placeholder."""
        item = parser.parse(text)
        assert item.name == ScanParser.FALLBACK_NAME
        assert item.id == text

    @pytest.mark.parametrize("text", ["[" * 3000, '{"a":' * 3000])
    def test_deeply_nested_json_uses_placeholder(self, parser: ScanParser, text: str):
        """Test nesting too deep to decode falls back instead of raising."""
        item = parser.parse(text)
        assert item.name == ScanParser.FALLBACK_NAME
        assert item.id == text

    def test_empty_text_uses_placeholder(self, parser: ScanParser):
        """Test empty text uses placeholder."""
        item = parser.parse("")
        assert item.name == ScanParser.FALLBACK_NAME
        assert item.id == ""

    def test_module_shortcut(self):
        """Test module shortcut."""
        assert parse_scan("garbage").id == "garbage"
