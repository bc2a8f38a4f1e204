from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


class InvalidBufferShape(ValueError):
    """Raised when a raw output buffer cannot be interpreted with the given layout."""


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in corner form (top-left + size), target image coordinates.
    """

    x_min: float
    y_min: float
    width: float
    height: float

    @property
    def x_max(self) -> float:
        return self.x_min + self.width

    @property
    def y_max(self) -> float:
        return self.y_min + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x_min, self.y_min, self.x_max, self.y_max


@dataclass(frozen=True)
class Keypoint:
    x: float
    y: float
    confidence: float


@dataclass
class Detection:
    """
    One decoded pose candidate. Coordinates are final once constructed.
    """

    bbox: BoundingBox
    confidence: float
    keypoints: List[Keypoint] = field(default_factory=list)


@dataclass
class Skeleton:
    """
    Joints of the selected detection plus its aggregate confidence.

    No identity across frames: a new Skeleton is built every inference cycle.
    """

    joints: List[Keypoint]
    confidence: float

    @classmethod
    def from_detection(cls, det: Detection) -> "Skeleton":
        return cls(joints=list(det.keypoints), confidence=det.confidence)

    def joints_array(self) -> np.ndarray:
        # (K, 3) as x, y, confidence; the third column is not depth.
        if not self.joints:
            return np.zeros((0, 3), dtype=np.float32)
        return np.array([(j.x, j.y, j.confidence) for j in self.joints], dtype=np.float32)
