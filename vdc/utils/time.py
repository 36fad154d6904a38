from datetime import datetime
from typing import Optional

EXPORT_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def now() -> datetime:
    """Plant-local wall clock, matching how ga_off_time is recorded."""
    return datetime.now().replace(microsecond=0)


def format_export_date(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(EXPORT_DATE_FORMAT)
