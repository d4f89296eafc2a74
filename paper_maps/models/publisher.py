"""Data model for a map publisher.

A Publisher is derived once per assembly run from the union of all
source collections: the icon comes from the static registry in
``paper_maps.core.constants`` and the series are the distinct
``properties.series`` values seen across the publisher's features.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Publisher:
    """A publisher entry of ``publishers.json``.

    Attributes:
        name: Publisher name, as used in ``properties.publisher``.
        icon: Icon URL from the publisher registry.
        series: Distinct series names in first-seen order.
    """

    name: str
    icon: str
    series: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        """Serialise to the ``publishers.json`` entry shape."""
        return {
            "publisher": self.name,
            "icon": self.icon,
            "series": list(self.series),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Publisher:
        """Deserialise a ``publishers.json`` entry.

        Raises:
            TypeError: If ``series`` is not a list.
        """
        series_raw = data.get("series", [])
        if not isinstance(series_raw, list):
            msg = f"series must be a list, got {type(series_raw).__name__}"
            raise TypeError(msg)
        return cls(
            name=str(data.get("publisher", "")),
            icon=str(data.get("icon", "")),
            series=tuple(str(s) for s in series_raw),
        )
