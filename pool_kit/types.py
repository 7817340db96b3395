from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Box:
    """
    Single detection in original-image pixel coordinates.

    Corner order is not enforced: x1 > x2 (or y1 > y2) is a valid state and
    only shows up as a negative area in the IoU math.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    label: str
    confidence: float
    class_id: Optional[int] = None

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    @property
    def area(self) -> float:
        return (self.x2 - self.x1) * (self.y2 - self.y1)


DetectionList = List[Box]
