from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .types import BoundingBox, Detection


@dataclass
class NMSConfig:
    iou_threshold: float = 0.45


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Intersection-over-Union of two corner-form boxes.

    Boxes with non-positive area on either side give 0.0 instead of NaN.
    """

    area_a = a.area
    area_b = b.area
    if area_a <= 0 or area_b <= 0:
        return 0.0

    inter_w = max(0.0, min(a.x_max, b.x_max) - max(a.x_min, b.x_min))
    inter_h = max(0.0, min(a.y_max, b.y_max) - max(a.y_min, b.y_min))
    inter = inter_w * inter_h
    return inter / (area_a + area_b - inter)


def _iou_one_to_many(boxes: np.ndarray, areas: np.ndarray, i: int, others: np.ndarray) -> np.ndarray:
    out = np.zeros(others.shape, dtype=np.float64)
    if areas[i] <= 0:
        return out

    xx1 = np.maximum(boxes[i, 0], boxes[others, 0])
    yy1 = np.maximum(boxes[i, 1], boxes[others, 1])
    xx2 = np.minimum(boxes[i, 2], boxes[others, 2])
    yy2 = np.minimum(boxes[i, 3], boxes[others, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    valid = areas[others] > 0
    union = areas[i] + areas[others] - inter
    out[valid] = inter[valid] / union[valid]
    return out


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of kept boxes, highest score first.

    Equal scores keep their input order. Every comparison is made against the
    surviving box itself, never against a merged box.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int32)

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    areas = (boxes[:, 2] - boxes[:, 0]) * (boxes[:, 3] - boxes[:, 1])
    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")

    # Indexed by position in `order`, not by input index.
    removed = np.zeros(order.shape[0], dtype=bool)
    keep: List[int] = []

    for pos in range(order.shape[0]):
        if removed[pos]:
            continue
        i = int(order[pos])
        keep.append(i)

        later = np.arange(pos + 1, order.shape[0])
        later = later[~removed[later]]
        if later.size == 0:
            continue

        overlaps = _iou_one_to_many(boxes, areas, i, order[later])
        removed[later[overlaps > cfg.iou_threshold]] = True

    return np.array(keep, dtype=np.int32)


def suppress(detections: Sequence[Detection], iou_threshold: float) -> List[Detection]:
    """
    Remove lower-confidence detections that overlap a kept one by more than
    `iou_threshold`. The threshold is used as-is, without range checks.
    """

    if not detections:
        return []

    boxes = np.array([d.bbox.as_xyxy() for d in detections], dtype=np.float64)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)
    keep_idx = nms(boxes, scores, NMSConfig(iou_threshold=iou_threshold))
    return [detections[int(i)] for i in keep_idx]
