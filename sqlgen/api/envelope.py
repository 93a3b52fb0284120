from typing import Any


def unwrap(response: Any, key: str, default: Any = None) -> Any:
    """
    Достать поле из ответа API. Бэкенд отвечает то {key: ...},
    то {success, data: {key: ...}}, то ещё одним слоем data.
    """
    node = response
    for _ in range(3):
        if not isinstance(node, dict):
            break
        if key in node:
            return node[key]
        node = node.get("data")
    return default
