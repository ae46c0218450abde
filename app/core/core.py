from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

def utcnow() -> datetime:
    """
    Fecha actual en UTC sin tzinfo, igual que la guardan las columnas DateTime.
    Se trunca a milisegundos para que sobreviva el paso por el lastModified de los JSON.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)

def isoformat(value: datetime) -> str:
    """Formato ISO con milisegundos y 'Z' (como el lastModified de los JSON)."""
    return value.isoformat(timespec="milliseconds") + "Z"

def to_record(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}

def to_string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]

def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Convierte un string ISO-8601 (con o sin 'Z'), un timestamp en milisegundos
    o un datetime a datetime UTC naive. Retorna None si no se puede.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.replace(microsecond=parsed.microsecond // 1000 * 1000)
