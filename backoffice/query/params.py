from typing import Dict, Mapping, Optional


def normalize_params(params, aliases: Optional[Mapping[str, str]] = None) -> Dict[str, object]:
    """Flatten a query-string mapping and fold alias keys onto canonical ones.

    Works with plain dicts and Werkzeug ``MultiDict`` (first value wins). A
    canonical key that carries a value is never overwritten by its alias.
    """
    if not params:
        return {}
    normalized: Dict[str, object] = {key: params.get(key) for key in params.keys()}
    for alias, canonical in (aliases or {}).items():
        if alias not in normalized:
            continue
        alias_value = normalized.pop(alias)
        if not read_text(normalized, canonical):
            normalized[canonical] = alias_value
    return normalized


def read_text(params: Mapping[str, object], key: str) -> str:
    value = params.get(key)
    if value is None:
        return ""
    return str(value).strip()
