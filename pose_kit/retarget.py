from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .types import Skeleton


logger = logging.getLogger(__name__)


def average_joints(joints: np.ndarray, indices: Sequence[int]) -> Optional[np.ndarray]:
    """
    Mean of the selected (x, y, conf) rows of `joints`.

    All-zero rows, non-finite rows and out-of-range indices are skipped.
    Returns None when nothing valid is left.
    """

    pts = np.asarray(joints, dtype=np.float64).reshape(-1, 3)
    idx = np.asarray([i for i in indices if 0 <= i < pts.shape[0]], dtype=np.int64)
    if idx.size == 0:
        return None

    sel = pts[idx]
    valid = np.all(np.isfinite(sel), axis=1) & np.any(sel != 0.0, axis=1)
    if not np.any(valid):
        return None
    return sel[valid].mean(axis=0)


@dataclass
class KeypointTarget:
    """
    A retarget target driven by the average of a few joints
    (e.g. left hand: 9 + 7 for COCO wrist/elbow).
    """

    name: str
    indices: Tuple[int, ...]
    smooth_speed: float = 10.0
    enabled: bool = True
    position: Optional[np.ndarray] = None
    last_computed: Optional[np.ndarray] = None


@dataclass
class TargetSmoother:
    """
    Moves each target toward `average * scale + offset` with an exponential
    step of `dt * smooth_speed` per update.
    """

    targets: Sequence[KeypointTarget]
    scale: float = 1.0
    offset: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    _offset: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._offset = np.asarray(self.offset, dtype=np.float64).reshape(3)

    def update(self, skeleton: Optional[Skeleton], dt: float) -> Dict[str, np.ndarray]:
        """
        Returns {target name: new position} for targets that moved this frame.
        Targets with no valid joints keep their previous position.
        """

        moved: Dict[str, np.ndarray] = {}
        if skeleton is None:
            return moved

        joints = skeleton.joints_array()
        for target in self.targets:
            if not target.enabled:
                continue

            avg = average_joints(joints, target.indices)
            if avg is None:
                logger.debug("no valid joints for target %s", target.name)
                continue

            goal = avg * self.scale + self._offset
            target.last_computed = goal

            if target.position is None:
                target.position = goal.copy()
            else:
                t = min(1.0, max(0.0, dt) * max(0.01, target.smooth_speed))
                target.position = target.position + (goal - target.position) * t
            moved[target.name] = target.position

        return moved
