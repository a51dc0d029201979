from datetime import datetime, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def format_iso_datetime(dt: datetime) -> str:
    # Fixed-width UTC strings compare correctly as plain strings in Cosmos queries
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(ISO_FORMAT)
