"""
Zone Styles
===========

Colors and stroke patterns of the SORA rings, the route and its markers.

Palette (hex, as shown on the mission map):
    Ground Risk Buffer  #ef4444  fill 0.12  dashed 6/4
    Contingency Area    #eab308  fill 0.15  dashed 6/4
    Flight Geography    #22c55e  fill 0.20  solid
    Route               #1d4ed8  width 3    dashed 8/5
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import supervision as sv

from sora_zone.zones import ZoneLabel


@dataclass(frozen=True)
class ZoneStyle:
    """
    Fill and stroke of one ring.

    Attributes:
        fill: Fill color (hex)
        stroke: Outline color (hex)
        fill_opacity: Fill opacity (0-1)
        dash: (on, off) lengths in pixels, None for a solid outline
        thickness: Outline thickness in pixels
    """
    fill: str
    stroke: str
    fill_opacity: float
    dash: Optional[Tuple[int, int]] = None
    thickness: int = 2

    def __post_init__(self):
        """Validate style."""
        if not 0.0 <= self.fill_opacity <= 1.0:
            raise ValueError(f"fill_opacity must be in [0, 1], got {self.fill_opacity}")
        if self.thickness < 1:
            raise ValueError(f"thickness must be >= 1, got {self.thickness}")
        if self.dash is not None and (len(self.dash) != 2 or min(self.dash) <= 0):
            raise ValueError(f"dash must be two positive lengths, got {self.dash}")

    @property
    def fill_color(self) -> sv.Color:
        return sv.Color.from_hex(self.fill)

    @property
    def stroke_color(self) -> sv.Color:
        return sv.Color.from_hex(self.stroke)


DEFAULT_ZONE_STYLES: Dict[ZoneLabel, ZoneStyle] = {
    ZoneLabel.GROUND_RISK_BUFFER: ZoneStyle(
        fill="#ef4444", stroke="#ef4444", fill_opacity=0.12, dash=(6, 4)
    ),
    ZoneLabel.CONTINGENCY: ZoneStyle(
        fill="#eab308", stroke="#eab308", fill_opacity=0.15, dash=(6, 4)
    ),
    ZoneLabel.FLIGHT_GEOGRAPHY: ZoneStyle(
        fill="#22c55e", stroke="#22c55e", fill_opacity=0.20
    ),
}

ROUTE_STYLE = ZoneStyle(
    fill="#1d4ed8", stroke="#1d4ed8", fill_opacity=0.0, dash=(8, 5), thickness=3
)

BACKGROUND_COLOR = "#e8f0e8"
START_MARKER_COLOR = "#16a34a"
END_MARKER_COLOR = "#dc2626"
WAYPOINT_COLOR = "#1d4ed8"
