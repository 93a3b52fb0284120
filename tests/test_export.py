import csv
import io
import json

import pytest

from sqlgen.errors import ExportError
from sqlgen.export.exporters import escape_xml, export_rows, sanitize_tag, to_csv, to_json, to_xml

ROWS = [
    {"id": 1, "name": "Ann, Jr.", "note": 'says "hi"'},
    {"id": 2, "name": "Bob", "note": None},
]


def test_to_json():
    assert json.loads(to_json(ROWS)) == ROWS
    assert to_json(ROWS).startswith("[\n  {")


def test_to_csv_quotes_and_nulls():
    out = to_csv(ROWS)
    assert out.split("\n")[0] == "id,name,note"
    assert out.split("\n")[1] == '1,"Ann, Jr.","says ""hi"""'
    assert out.split("\n")[2] == "2,Bob,"
    assert not out.endswith("\n")
    parsed = list(csv.reader(io.StringIO(out)))
    assert parsed[1] == ["1", "Ann, Jr.", 'says "hi"']


def test_to_csv_newline_in_value():
    out = to_csv([{"text": "line1\nline2"}])
    assert out == 'text\n"line1\nline2"'


@pytest.mark.parametrize("fn", [to_json, to_csv, to_xml])
def test_empty_rows(fn):
    with pytest.raises(ExportError, match="No data to export"):
        fn([])


def test_sanitize_tag():
    assert sanitize_tag("total amount") == "total_amount"
    assert sanitize_tag("1st") == "_st"
    assert sanitize_tag("orders.total") == "orders_total"
    assert sanitize_tag("") == "_"
    assert sanitize_tag("_ok") == "_ok"


def test_to_xml():
    xml = to_xml([{"id": 1, "a&b": "<x> & 'y'", "none": None, "meta": {"k": "v"}, "tags": ["p", "q"]}])
    assert xml == "\n".join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        "<data>",
        "  <item>",
        "    <id>1</id>",
        "    <a_b>&lt;x&gt; &amp; &apos;y&apos;</a_b>",
        "    <none />",
        "    <meta>",
        "      <k>v</k>",
        "    </meta>",
        "    <tags>",
        "      <value>p</value>",
        "      <value>q</value>",
        "    </tags>",
        "  </item>",
        "</data>",
    ])


def test_escape_xml_all_specials():
    assert escape_xml('a & b < c > d "e" \'f\'') == "a &amp; b &lt; c &gt; d &quot;e&quot; &apos;f&apos;"
    xml = to_xml(ROWS)
    assert "<note>says &quot;hi&quot;</note>" in xml
    assert "<name>Ann, Jr.</name>" in xml


def test_to_xml_custom_tags():
    xml = to_xml([{"id": 1}], root_tag="query results", item_tag="row")
    assert "<query_results>" in xml
    assert "<row>" in xml


def test_export_rows(tmp_path):
    path = tmp_path / "out.csv"
    assert export_rows(ROWS, "CSV", str(path)) == str(path)
    assert path.read_text(encoding="utf-8") == to_csv(ROWS)

    with pytest.raises(ExportError, match="Unsupported export format"):
        export_rows(ROWS, "yaml", str(tmp_path / "out.yaml"))
