from typing import Any, Dict, Iterable


def mask_value(value: Any) -> Any:
    """Hide most of an email address or identifier before it reaches the logs."""
    if not isinstance(value, str):
        return value
    if "@" in value:
        name, _, domain = value.partition("@")
        return (name[:2] + "***@" + domain) if name else "***@" + domain
    if len(value) > 12:
        return value[:4] + "..." + value[-4:]
    return "***"


def sanitize_payload(payload: Dict, allowed_keys: Iterable[str]) -> Dict:
    """Return a filtered copy of payload with only allowed keys and masked values."""
    return {key: mask_value(payload[key]) for key in allowed_keys if key in payload}
