"""Timestamp helpers shared by the assembler, emitters and collaborators.

Feature ``last_updated`` values and tileset descriptions all use the same
UTC, second-precision ISO 8601 form, e.g. ``2025-02-14T09:30:00Z``.
"""

from __future__ import annotations

from datetime import UTC, datetime


def iso_timestamp(moment: datetime | None = None) -> str:
    """Render *moment* as ``YYYY-MM-DDTHH:MM:SSZ`` (UTC, no fractional seconds).

    Args:
        moment: Timestamp to render.  Naive datetimes are taken to be UTC.
            Defaults to the current time.
    """
    if moment is None:
        moment = datetime.now(UTC)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

