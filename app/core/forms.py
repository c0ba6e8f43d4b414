import re
from typing import Any, Iterable

_BRACKETED = re.compile(r"\[([^\]]*)\]")


class FormStructureError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


def unflatten_form(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Turn bracketed form keys into nested data.

    ``products[0][name]=Lamp`` and ``products[0][image]=<file>`` become
    ``{"products": [{"name": "Lamp", "image": <file>}]}``. List indexes must
    run from 0 without gaps so error keys match what the client sent.
    """

    data: dict[str, Any] = {}
    for raw_key, value in items:
        head, bracket, rest = raw_key.partition("[")
        path = [head] + (_BRACKETED.findall(bracket + rest) if bracket else [])
        node = data
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return _listify(data, "")


def _listify(node: Any, field: str) -> Any:
    if not isinstance(node, dict):
        return node
    converted = {
        key: _listify(value, f"{field}.{key}" if field else key) for key, value in node.items()
    }
    if converted and all(key.isdigit() for key in converted):
        if sorted(converted, key=int) != [str(index) for index in range(len(converted))]:
            raise FormStructureError(field or "body", "Indexes must be consecutive starting at 0.")
        return [converted[str(index)] for index in range(len(converted))]
    return converted
