import pytest

from treasury_intel.errors import ResponseParseError
from treasury_intel.llm.parsing import parse_json_array, strip_code_fences


def test_strip_code_fences():
    assert strip_code_fences('```json\n[{"id": "a"}]\n```') == '[{"id": "a"}]'
    assert strip_code_fences("```\n[]\n```") == "[]"
    assert strip_code_fences("  [1, 2]  ") == "[1, 2]"


def test_parse_json_array_plain_and_fenced():
    assert parse_json_array('[{"id": "a", "urgency": 2}]') == [{"id": "a", "urgency": 2}]
    assert parse_json_array('```json\n[{"id": "b"}]\n```') == [{"id": "b"}]


def test_parse_json_array_recovers_from_surrounding_prose():
    content = 'Here are the classifications:\n[{"id": "c"}]\nLet me know if you need more.'
    assert parse_json_array(content) == [{"id": "c"}]


@pytest.mark.parametrize(
    "content",
    ["", "   ", "no json here", '{"id": "a"}', "[{broken", "```json\n{\"items\": []}\n```"],
)
def test_parse_json_array_rejects_non_arrays(content):
    with pytest.raises(ResponseParseError):
        parse_json_array(content)
