"""Serialization of the event log for data-portability requests."""

import csv
import io
import json
from collections.abc import Sequence

from .models import AnalyticsEvent, ExportFormat

CSV_COLUMNS = ("timestamp", "eventType", "userId", "sessionId", "platform", "payload")


def export_events(events: Sequence[AnalyticsEvent], fmt: ExportFormat | str) -> str:
    """Serialize events as CSV (header + one row per event) or a JSON list."""
    fmt = ExportFormat(fmt)
    if fmt == ExportFormat.CSV:
        return to_csv(events)
    return to_json(events)


def to_json(events: Sequence[AnalyticsEvent]) -> str:
    return json.dumps(
        [e.model_dump(mode="json", by_alias=True) for e in events],
        indent=2,
        ensure_ascii=False,
    )


def to_csv(events: Sequence[AnalyticsEvent]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for e in events:
        writer.writerow(
            [
                e.timestamp.isoformat(),
                e.event_type.value,
                e.user_id or "",
                e.session_id,
                e.device_info.platform,
                json.dumps(e.event_data, ensure_ascii=False, default=str),
            ]
        )
    return buf.getvalue()
