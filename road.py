"""
Road for AutoDrive.

A straight multi-lane road running along the y axis. Its two kerbs are
the border segments every car senses and collides with; lane centres are
where traffic and AI cars are spawned.
"""

from geometry import lerp
from config import ROAD_CENTER_X, ROAD_WIDTH, LANE_COUNT, ROAD_EXTENT


class Road:
    """
    Left/right kerbs plus lane geometry.
    """

    def __init__(self, x: float = ROAD_CENTER_X, width: float = ROAD_WIDTH,
                 lane_count: int = LANE_COUNT, extent: float = ROAD_EXTENT):
        assert lane_count >= 1, "a road needs at least one lane"
        self.x          = x
        self.width      = width
        self.lane_count = lane_count

        self.left   = x - width / 2
        self.right  = x + width / 2
        self.top    = -extent
        self.bottom = extent

        top_left     = (self.left,  self.top)
        top_right    = (self.right, self.top)
        bottom_left  = (self.left,  self.bottom)
        bottom_right = (self.right, self.bottom)
        self.borders = [
            (top_left,  bottom_left),
            (top_right, bottom_right),
        ]

    @property
    def lane_width(self) -> float:
        return self.width / self.lane_count

    def lane_center(self, lane_index: int) -> float:
        """x of the centre of a lane; indices past the last lane clamp to it."""
        lane_index = max(0, min(lane_index, self.lane_count - 1))
        return self.left + self.lane_width / 2 + lane_index * self.lane_width

    def lane_lines(self) -> list:
        """x positions of the dashed separators between lanes (for drawing)."""
        return [lerp(self.left, self.right, i / self.lane_count)
                for i in range(1, self.lane_count)]
