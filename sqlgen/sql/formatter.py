import re
from typing import List

KEYWORDS = [
    "SELECT", "FROM", "WHERE", "JOIN", "LEFT JOIN", "RIGHT JOIN", "INNER JOIN",
    "FULL JOIN", "GROUP BY", "ORDER BY", "HAVING", "LIMIT", "OFFSET", "INSERT",
    "UPDATE", "DELETE", "CREATE", "ALTER", "DROP", "TABLE", "INDEX", "VIEW",
    "AND", "OR", "NOT", "IN", "BETWEEN", "LIKE", "IS NULL", "IS NOT NULL",
    "UNION", "ALL", "DISTINCT", "AS", "ON", "USING", "VALUES", "SET",
]

_CLAUSE_RE = re.compile(
    r"\b(SELECT|FROM|WHERE|GROUP BY|HAVING|ORDER BY|LIMIT|OFFSET|INSERT INTO|UPDATE"
    r"|DELETE FROM|CREATE TABLE|ALTER TABLE|DROP TABLE)\b",
    re.IGNORECASE,
)
_JOIN_RE = re.compile(r"\b(?:LEFT|RIGHT|INNER|FULL|CROSS)?\s+JOIN\b", re.IGNORECASE)
_UNION_RE = re.compile(r"\b(UNION ALL|UNION)\b", re.IGNORECASE)
_KEYWORD_RES = [(kw, re.compile(rf"\b{kw}\b", re.IGNORECASE)) for kw in KEYWORDS]

_DML_RE = re.compile(
    r"^\s*(INSERT|UPDATE|DELETE|TRUNCATE|CREATE|ALTER|DROP|RENAME|GRANT|REVOKE)\s+",
    re.IGNORECASE,
)
_FROM_RE = re.compile(
    r"\bFROM\s+([^()\[\]]+?)(?:\s*(?:WHERE|GROUP BY|HAVING|ORDER BY|LIMIT|$))",
    re.IGNORECASE,
)
_JOIN_TABLE_RE = re.compile(
    r"\b(?:JOIN|INNER JOIN|LEFT JOIN|RIGHT JOIN|FULL JOIN|CROSS JOIN)\s+(\w+)",
    re.IGNORECASE,
)

_ERROR_PATTERNS = [
    (re.compile(r"table\s+'([^']+)'\s+does not exist", re.IGNORECASE),
     "Table '{0}' does not exist in the database."),
    (re.compile(r"column\s+'([^']+)'\s+does not exist", re.IGNORECASE),
     "Column '{0}' does not exist in the table."),
    (re.compile(r'syntax error at or near "([^"]+)"', re.IGNORECASE),
     'Syntax error near "{0}". Please check your SQL syntax.'),
    (re.compile(r"permission denied for table\s+(\S+)", re.IGNORECASE),
     "You don't have permission to access the table '{0}'."),
]


def format_sql(sql: str) -> str:
    """Простое форматирование: перенос перед ключевыми словами, отступы для подзапросов."""
    if not sql.strip():
        return ""

    s = re.sub(r"\s+", " ", sql).strip()
    s = _CLAUSE_RE.sub(lambda m: "\n" + m.group(1), s)
    s = _JOIN_RE.sub(lambda m: "\n" + m.group(0).strip(), s)
    s = _UNION_RE.sub(lambda m: "\n\n" + m.group(0) + "\n", s)

    out: List[str] = []
    parens: List[bool] = []  # True - скобка открывает подзапрос
    depth = 0
    for i, ch in enumerate(s):
        if ch == "(":
            sub = s[i + 1:].lstrip()[:6].upper() == "SELECT"
            parens.append(sub)
            out.append(ch)
            if sub:
                # перенос перед SELECT уже вставлен выше
                depth += 1
        elif ch == ")" and parens:
            if parens.pop():
                depth = max(0, depth - 1)
                out.append("\n" + "  " * depth)
            out.append(ch)
        elif ch == "\n":
            out.append("\n" + "  " * depth)
        else:
            out.append(ch)

    result = "".join(out)
    for kw, rx in _KEYWORD_RES:
        result = rx.sub(kw, result)

    result = re.sub(r"\n[ \t]*(?=\n)", "", result)
    return "\n".join(line.rstrip() for line in result.strip().split("\n"))


def is_dml_query(sql: str) -> bool:
    """Запрос меняет данные или схему (нужно подтверждение перед выполнением)."""
    if not sql.strip():
        return False
    return _DML_RE.match(sql) is not None


def extract_tables_from_sql(sql: str) -> List[str]:
    """Таблицы из FROM и JOIN. Грубая эвристика, подзапросы не разбираются."""
    if not sql.strip():
        return []

    normalized = re.sub(r"\s+", " ", sql).strip()
    tables: List[str] = []

    m = _FROM_RE.search(normalized)
    if m:
        for ref in m.group(1).split(","):
            parts = ref.strip().split()
            if parts and parts[0] not in tables:
                tables.append(parts[0])

    for m in _JOIN_TABLE_RE.finditer(normalized):
        if m.group(1) not in tables:
            tables.append(m.group(1))
    return tables


def parse_error_message(message: str) -> str:
    for rx, template in _ERROR_PATTERNS:
        m = rx.search(message)
        if m:
            return template.format(m.group(1))
    return message
