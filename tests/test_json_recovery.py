"""Tests for recovering JSON from model output."""

import pytest

from fitscore.parse.json_recovery import (
    PARSE_ERROR_KEY,
    PARSE_WARNING_KEY,
    extract_candidate,
    recover_json,
    repair_truncated,
    scan,
    strip_code_fences,
)

VALID = '{"customerName": "Arctic Air", "industry": "HVAC", "userCount": {"total": 100, "field": 80}}'


class TestValidInput:
    """Well-formed objects, with and without wrapping."""

    @pytest.mark.parametrize("wrapped", [
        VALID,
        f"Here is the analysis:\n{VALID}\nLet me know if you need more.",
        f"```json\n{VALID}\n```",
        f"```\n{VALID}\n```",
        f"Sure!\n```json\n{VALID}\n```\nDone.",
        f"```python\nprint(1)\n```\n{VALID}",
        f"```bash\nls\n```\n```json\n{VALID}\n```",
    ])
    def test_wrapping_does_not_change_result(self, wrapped):
        assert recover_json(wrapped) == recover_json(VALID)
        assert PARSE_WARNING_KEY not in recover_json(wrapped)

    def test_unterminated_fence(self):
        result = recover_json(f"```json\n{VALID}")
        assert result["customerName"] == "Arctic Air"

    def test_nested_values_kept(self):
        result = recover_json(VALID)
        assert result["userCount"] == {"total": 100, "field": 80}


class TestTruncatedInput:
    """Repair of output cut off mid-object."""

    def test_truncated_inside_array(self):
        assert recover_json('{"a":1,"b":[1,2') == {"a": 1, "b": [1, 2]}

    def test_truncated_after_complete_property(self):
        text = '{"customerName": "Arctic Air", "userCount": {"total": 100}, "services": {"types": ["HVAC"], "count": 12'
        result = recover_json(text)
        assert result["customerName"] == "Arctic Air"
        assert result["services"] == {"types": ["HVAC"]}
        assert PARSE_WARNING_KEY not in result

    def test_truncated_in_nested_object_with_inner_brace(self):
        text = '{"a": {"b": 1}, "c": [{"d": 2}, {"e": 3'
        result = recover_json(text)
        assert result["a"] == {"b": 1}
        assert result["c"] == [{"d": 2}]

    def test_unterminated_string_falls_back(self):
        text = '{"customerName": "Arctic Air", "fitScore": 72, "industry": "HVA'
        result = recover_json(text)

        assert result[PARSE_WARNING_KEY] is True
        assert PARSE_ERROR_KEY in result
        assert result["customerName"] == "Arctic Air"
        assert result["fitScore"] == 72
        assert "industry" not in result

    def test_repair_returns_none_inside_string(self):
        assert repair_truncated('{"a": "unfinished') is None


class TestFallback:
    """Scalar fallback for hopeless input."""

    def test_no_object(self):
        result = recover_json("I could not analyze this transcript.")
        assert result[PARSE_WARNING_KEY] is True
        assert set(result) == {PARSE_WARNING_KEY, PARSE_ERROR_KEY}

    def test_user_counts_recovered(self):
        text = '{"customerName": "Polar", "userCount": {"total": "120", "backOffice": 20, "field": 100}, "notes": "cut'
        result = recover_json(text)
        assert result[PARSE_WARNING_KEY] is True
        assert result["userCount"] == {"total": 120, "backOffice": 20, "field": 100}

    @pytest.mark.parametrize("value", [None, "", 42, "{", "}{", '{"a": [}', "```"])
    def test_never_raises(self, value):
        assert isinstance(recover_json(value), dict)


class TestHelpers:
    """Scanner and slicing helpers."""

    def test_strip_code_fences_without_fence(self):
        assert strip_code_fences("plain") == "plain"

    def test_strip_code_fences_skips_blocks_without_object(self):
        assert strip_code_fences('```python\nprint(1)\n```\n```json\n{"a": 1}\n```') == '{"a": 1}\n'
        text = '```python\nprint(1)\n```\n{"a": 1}'
        assert strip_code_fences(text) == text

    def test_extract_candidate_bounds(self):
        assert extract_candidate('noise {"a": 1} tail') == '{"a": 1}'
        assert extract_candidate('x {"a": [1') == '{"a": [1'
        assert extract_candidate("no braces") is None

    def test_scan_ignores_brackets_in_strings(self):
        state = scan('{"text": "a { [ , ] }", "b": [1')
        assert state.open_stack == ["{", "["]
        assert not state.in_string

    def test_scan_handles_escaped_quotes(self):
        state = scan('{"text": "say \\"hi\\"", ')
        assert not state.in_string
        assert state.last_boundary is not None
