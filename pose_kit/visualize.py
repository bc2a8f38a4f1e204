from __future__ import annotations

from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from .types import Detection, Skeleton


# COCO-17 joint pairs.
COCO_BONES: Tuple[Tuple[int, int], ...] = (
    (5, 7), (7, 9),  # left arm
    (6, 8), (8, 10),  # right arm
    (5, 6), (5, 11), (6, 12), (11, 12),  # torso
    (11, 13), (13, 15),  # left leg
    (12, 14), (14, 16),  # right leg
    (0, 1), (0, 2), (1, 3), (2, 4),  # face
)


def _require_cv2():
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for drawing. Install with `pip install opencv-python`.") from e
    return cv2


def _check_image(image_bgr: np.ndarray) -> None:
    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")


def draw_skeleton(
    image_bgr: np.ndarray,
    skeleton: Optional[Skeleton],
    *,
    joint_threshold: float = 0.5,
    bones: Sequence[Tuple[int, int]] = COCO_BONES,
    joint_color: Tuple[int, int, int] = (0, 0, 255),
    bone_color: Tuple[int, int, int] = (0, 255, 0),
    joint_radius: int = 4,
    bone_thickness: int = 2,
) -> np.ndarray:
    """
    Draw joints and bones on an OpenCV BGR image and return a copy.

    A joint is drawn only if its own confidence is > joint_threshold; a bone
    only if both of its joints are. The detection confidence plays no part.
    """

    cv2 = _require_cv2()
    _check_image(image_bgr)

    out = image_bgr.copy()
    if skeleton is None:
        return out

    joints = skeleton.joints
    visible = [j.confidence > joint_threshold for j in joints]

    for a, b in bones:
        if a >= len(joints) or b >= len(joints):
            continue
        if visible[a] and visible[b]:
            pa = (int(joints[a].x), int(joints[a].y))
            pb = (int(joints[b].x), int(joints[b].y))
            cv2.line(out, pa, pb, bone_color, thickness=bone_thickness, lineType=cv2.LINE_AA)

    for joint, ok in zip(joints, visible):
        if ok:
            cv2.circle(out, (int(joint.x), int(joint.y)), joint_radius, joint_color, thickness=-1)

    return out


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    show_score: bool = True,
    color: Tuple[int, int, int] = (0, 255, 255),
    box_thickness: int = 1,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw detection boxes (+ score) on an OpenCV BGR image and return a copy.
    """

    cv2 = _require_cv2()
    _check_image(image_bgr)

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.bbox.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        if not show_score:
            continue

        label = f"person {det.confidence:.2f}"
        (_, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Above the box if it fits, else inside.
        y_text = y1i - baseline if y1i - th - baseline >= 0 else min(y1i + th, h - 1)
        cv2.putText(
            out,
            label,
            (x1i, y_text),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
