"""
Unit tests for utility helpers.
"""

import uuid

import pytest

from loganalytics_output.utils import generate_flush_id, iter_ndjson, to_json


def test_generate_flush_id_is_uuid():
    assert uuid.UUID(generate_flush_id())
    assert generate_flush_id() != generate_flush_id()


def test_to_json_is_compact_and_tolerant():
    assert to_json({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'
    assert to_json({"obj": object}).startswith('{"obj":"<class')


def test_iter_ndjson_skips_blank_lines(tmp_path):
    p = tmp_path / "x.ndjson"
    p.write_text('{"a": 1}\n\n  \n{"a": 2}\n', encoding="utf-8")
    assert list(iter_ndjson(str(p))) == [{"a": 1}, {"a": 2}]


def test_iter_ndjson_rejects_non_objects(tmp_path):
    p = tmp_path / "x.ndjson"
    p.write_text('{"a": 1}\n[1, 2]\n', encoding="utf-8")
    with pytest.raises(ValueError, match="line 2"):
        list(iter_ndjson(str(p)))
