"""Экспорт результатов запроса (список dict-строк) в JSON / CSV / XML."""
import csv
import io
import json
import logging
import re
from typing import Any, Dict, List, Sequence

from sqlgen.errors import ExportError

log = logging.getLogger(__name__)

FORMATS = ("json", "csv", "xml")

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}
_INVALID_TAG_CHARS = re.compile(r"[^A-Za-z0-9_]")


def _require_rows(rows: Sequence[Dict[str, Any]]) -> None:
    if not rows:
        raise ExportError("No data to export")


def to_json(rows: Sequence[Dict[str, Any]]) -> str:
    _require_rows(rows)
    return json.dumps(list(rows), indent=2, ensure_ascii=False, default=str)


def to_csv(rows: Sequence[Dict[str, Any]]) -> str:
    """Заголовок - ключи первой строки; None -> пустая ячейка."""
    _require_rows(rows)
    headers = list(rows[0].keys())

    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
    return buf.getvalue().rstrip("\n")


def escape_xml(value: Any) -> str:
    return "".join(_XML_ESCAPES.get(ch, ch) for ch in str(value))


def sanitize_tag(name: Any) -> str:
    tag = _INVALID_TAG_CHARS.sub("_", str(name))
    if not tag:
        return "_"
    if not (tag[0].isalpha() or tag[0] == "_"):
        tag = "_" + tag[1:]
    return tag


def _xml_value(tag: str, value: Any, indent: str) -> List[str]:
    if value is None:
        return [f"{indent}<{tag} />"]
    if isinstance(value, dict):
        lines = [f"{indent}<{tag}>"]
        for k, v in value.items():
            lines.extend(_xml_value(sanitize_tag(k), v, indent + "  "))
        lines.append(f"{indent}</{tag}>")
        return lines
    if isinstance(value, (list, tuple)):
        lines = [f"{indent}<{tag}>"]
        for v in value:
            lines.extend(_xml_value("value", v, indent + "  "))
        lines.append(f"{indent}</{tag}>")
        return lines
    return [f"{indent}<{tag}>{escape_xml(value)}</{tag}>"]


def to_xml(rows: Sequence[Dict[str, Any]], root_tag: str = "data", item_tag: str = "item") -> str:
    _require_rows(rows)
    root = sanitize_tag(root_tag)
    item = sanitize_tag(item_tag)

    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f"<{root}>"]
    for row in rows:
        lines.append(f"  <{item}>")
        for key, value in row.items():
            lines.extend(_xml_value(sanitize_tag(key), value, "    "))
        lines.append(f"  </{item}>")
    lines.append(f"</{root}>")
    return "\n".join(lines)


def export_rows(rows: Sequence[Dict[str, Any]], fmt: str, path: str) -> str:
    """Записать rows в файл в формате fmt (json|csv|xml). Возвращает путь."""
    fmt = (fmt or "").lower()
    if fmt == "json":
        payload = to_json(rows)
    elif fmt == "csv":
        payload = to_csv(rows)
    elif fmt == "xml":
        payload = to_xml(rows)
    else:
        raise ExportError(f"Unsupported export format: {fmt!r} (expected one of {', '.join(FORMATS)})")

    try:
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(payload)
    except OSError as e:
        raise ExportError(f"Failed to write {path}: {e}") from e

    log.info("[export] %d rows -> %s (%s)", len(rows), path, fmt)
    return path
