"""Placement value types: sizes, anchors and anchored offsets."""
from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Size:
    width: int
    height: int

    def resize_to_fit(self, target: Size) -> Size:
        """Return this size shrunk to fit inside ``target``.

        The aspect ratio is kept and neither dimension ever grows. When both
        axes overflow the more constraining ratio wins.
        """

        over_w = target.width < self.width
        over_h = target.height < self.height
        if over_w and over_h:
            rate = min(target.width / self.width, target.height / self.height)
        elif over_w:
            rate = target.width / self.width
        elif over_h:
            rate = target.height / self.height
        else:
            return self
        return Size(int(self.width * rate), int(self.height * rate))


class Anchor(enum.Enum):
    TOP_LEFT = "top_left"
    BOTTOM_LEFT = "bottom_left"
    BOTTOM_RIGHT = "bottom_right"


@dataclass(frozen=True, slots=True)
class Offset:
    anchor: Anchor
    x: int
    y: int

    def resolve(self, canvas: Size) -> tuple[int, int]:
        """Absolute top-left origin of this offset on ``canvas``."""

        if self.anchor is Anchor.TOP_LEFT:
            return self.x, self.y
        if self.anchor is Anchor.BOTTOM_LEFT:
            return self.x, canvas.height + self.y
        return canvas.width + self.x, canvas.height + self.y
