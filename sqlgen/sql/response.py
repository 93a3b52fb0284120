"""
Разбор поля sqlQuery из ответа POST /queries/generate.

Бэкенд кладёт в sqlQuery строку, внутри которой обычно лежит JSON
{"query": ..., "explanation": ...}, иногда обёрнутый в ```json```-блок,
иногда с префиксом "json", иногда с артефактами конкатенации '" + "'.
Если JSON не разбирается, ищем ```sql```-блок, а затем берём текст как есть.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

log = logging.getLogger(__name__)

NO_EXPLANATION = "No detailed explanation provided."

_JSON_FENCE_START = re.compile(r"^```json\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```$")
_JSON_PREFIX = re.compile(r"^json\s*", re.IGNORECASE)
_CONCAT = re.compile(r'"\s*\+\s*"')
_SQL_FENCE = re.compile(r"```(?:sql)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass
class GeneratedSql:
    sql: str
    explanation: str


def unwrap_generated_sql(sql_query: Any, fallback_explanation: str = "") -> GeneratedSql:
    if sql_query is None:
        return GeneratedSql("", fallback_explanation)
    if isinstance(sql_query, dict):
        # уже разобранный объект
        return GeneratedSql(
            str(sql_query.get("query") or ""),
            str(sql_query.get("explanation") or fallback_explanation or NO_EXPLANATION),
        )
    if not isinstance(sql_query, str):
        return GeneratedSql(str(sql_query), fallback_explanation)

    raw = sql_query.strip()
    payload = raw
    if _JSON_FENCE_START.match(payload):
        payload = _FENCE_END.sub("", _JSON_FENCE_START.sub("", payload))
    elif _JSON_PREFIX.match(payload) and not payload.lower().startswith("json_"):
        payload = _JSON_PREFIX.sub("", payload)

    try:
        parsed = json.loads(_CONCAT.sub("", payload))
    except ValueError:
        parsed = None

    if isinstance(parsed, dict):
        return GeneratedSql(
            str(parsed.get("query") or ""),
            str(parsed.get("explanation") or fallback_explanation or NO_EXPLANATION),
        )

    log.debug("[ai] sqlQuery is not JSON, falling back to text extraction")
    m = _SQL_FENCE.search(raw)
    if m:
        sql = m.group(1).strip()
    elif "{" not in raw:
        sql = payload
    else:
        sql = ""
    return GeneratedSql(sql, fallback_explanation)
