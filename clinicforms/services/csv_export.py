import csv
import io
import json
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence


def collect_headers(rows: Sequence[Dict[str, Any]]) -> List[str]:
    headers: List[str] = []
    seen = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                headers.append(key)
    return headers


def _serialize_csv_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_csv(rows: Sequence[Dict[str, Any]], headers: Optional[Sequence[str]] = None) -> str:
    """Cells holding a comma, newline or quote are quoted; embedded quotes are doubled."""
    if not rows:
        return ""
    headers = list(headers) if headers is not None else collect_headers(rows)
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow([_serialize_csv_value(row.get(h)) for h in headers])
    return output.getvalue().rstrip("\n")


def slug(text: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]", "_", text or "", flags=re.IGNORECASE)


def export_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"{prefix}_{today.isoformat()}.csv"
