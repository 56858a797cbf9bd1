import sys, pathlib; sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))
from sustainify.core import normalizer


def test_fenced_json_ok():
    txt = '```json\n{"name":"bottle","description":"plastic, recyclable"}\n```'
    data = normalizer.normalize(txt)
    assert data == {"name": "bottle", "description": "plastic, recyclable"}


def test_repairs_js_style_object():
    txt = "Sure! Here's the result: {name: 'can', description: 'metal',}"
    data = normalizer.normalize(txt)
    assert data == {"name": "can", "description": "metal"}


def test_no_json_returns_none():
    assert normalizer.normalize("no json here at all") is None


def test_empty_and_missing_input_return_none():
    assert normalizer.normalize("") is None
    assert normalizer.normalize(None) is None
    assert normalizer.normalize(42) is None


def test_json_prefix_is_dropped():
    txt = 'JSON {"name":"jar","description":"glass"}'
    assert normalizer.normalize(txt)["name"] == "jar"


def test_greedy_span_covers_outermost_braces():
    txt = 'prefix {"name":"box","confidences":[{"name":"box","prob":0.9}]} suffix'
    data = normalizer.normalize(txt)
    assert data["confidences"][0]["prob"] == 0.9


def test_multiple_blocks_are_not_disambiguated():
    txt = 'first {"a": 1} then {"b": 2}'
    assert normalizer.normalize(txt) is None


def test_top_level_array_not_recognized():
    assert normalizer.normalize('[1, 2, 3]') is None


def test_unrepairable_returns_none():
    assert normalizer.normalize("{name: can description}") is None


def test_trailing_comma_in_list():
    txt = '{"name": "cup", "confidences": [{"name": "cup", "prob": 0.5},],}'
    data = normalizer.normalize(txt)
    assert data["confidences"] == [{"name": "cup", "prob": 0.5}]


def test_to_identify_result_skips_bad_confidences():
    result = normalizer.to_identify_result(
        {"name": "can", "confidences": [{"name": "can", "prob": "0.8"}, "junk", {"prob": 1}]}
    )
    assert result.name == "can"
    assert result.description == ""
    assert [(c.name, c.prob) for c in result.confidences] == [("can", 0.8)]
    assert result.to_dict()["confidences"] == [{"name": "can", "prob": 0.8}]


def test_oversized_integer_returns_none():
    txt = '{"name": "can", "prob": 1' + "0" * 5000 + "}"
    assert normalizer.normalize(txt) is None


def test_deep_nesting_returns_none():
    txt = '{"a": ' + "[" * 100000 + "]" * 100000 + "}"
    assert normalizer.normalize(txt) is None


def test_bare_keys_with_hyphen_and_dollar():
    data = normalizer.normalize("{item-name: 'x', $ref: 'y'}")
    assert data == {"item-name": "x", "$ref": "y"}
