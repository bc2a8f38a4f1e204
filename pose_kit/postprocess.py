from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple, Union, runtime_checkable

import numpy as np

from .config import CoordinateSpace, YoloPoseConfig, parse_coordinate_space
from .nms import suppress
from .types import BoundingBox, Detection, InvalidBufferShape, Keypoint, Skeleton


logger = logging.getLogger(__name__)

BufferLike = Union[np.ndarray, List[float], Tuple[float, ...]]


@runtime_checkable
class PoseParser(Protocol):
    """
    Anything that turns one raw model output into (at most) one skeleton.
    """

    def parse(self, buffer: BufferLike, image_size: Tuple[int, int]) -> Optional[Skeleton]:
        ...


def _as_flat_buffer(buffer: BufferLike) -> np.ndarray:
    try:
        data = np.asarray(buffer, dtype=np.float32)
    except (TypeError, ValueError) as exc:
        raise InvalidBufferShape("Raw output must be numeric data convertible to float32.") from exc

    if data.ndim == 3 and data.shape[0] != 1:
        raise InvalidBufferShape(f"Batch > 1 is not supported (got shape {data.shape}). Pass one image at a time.")
    return data.reshape(-1)


def _scale_factors(
    coordinate_space: Union[CoordinateSpace, str],
    image_size: Tuple[int, int],
    model_input_size: int,
) -> Tuple[float, float]:
    space = parse_coordinate_space(coordinate_space)
    img_w, img_h = image_size

    if space is CoordinateSpace.NORMALIZED:
        return float(img_w), float(img_h)

    if model_input_size <= 0:
        raise InvalidBufferShape(f"model_input_size must be > 0 (got {model_input_size})")
    return float(img_w) / model_input_size, float(img_h) / model_input_size


def decode(
    buffer: BufferLike,
    num_keypoints: int,
    conf_threshold: float,
    coordinate_space: Union[CoordinateSpace, str],
    image_size: Tuple[int, int],
    model_input_size: int = 640,
) -> List[Detection]:
    """
    Decode a flat YOLO-pose output into candidate detections (no NMS).

    Layout per anchor (stride = 5 + num_keypoints * 3):
        [cx, cy, w, h, conf, kx0, ky0, kc0, kx1, ky1, kc1, ...]

    Args:
        buffer: raw output values; never modified or kept
        num_keypoints: keypoints per anchor (17 for COCO)
        conf_threshold: anchors with conf below this are dropped before any keypoint is read
        coordinate_space: how raw coordinates are expressed
        image_size: (width, height) of the target image
        model_input_size: square model input side, used for MODEL_INPUT_PIXELS

    Returns detections in anchor order. A trailing partial anchor is ignored.
    """

    stride = 5 + num_keypoints * 3
    if num_keypoints <= 0 or stride <= 0:
        raise InvalidBufferShape(f"num_keypoints must be > 0 (got {num_keypoints})")

    sx, sy = _scale_factors(coordinate_space, image_size, model_input_size)
    data = _as_flat_buffer(buffer)

    num_anchors = data.size // stride
    if num_anchors == 0:
        return []

    records = data[: num_anchors * stride].reshape(num_anchors, stride)
    # Only anchors strictly below the threshold are dropped; a NaN confidence is kept.
    keep = ~(records[:, 4] < conf_threshold)
    kept = records[keep].astype(np.float64)
    logger.debug("decoded %d anchors, %d above conf %.3f", num_anchors, kept.shape[0], conf_threshold)
    if kept.shape[0] == 0:
        return []

    cx = kept[:, 0] * sx
    cy = kept[:, 1] * sy
    w = kept[:, 2] * sx
    h = kept[:, 3] * sy
    scores = kept[:, 4]

    kps = kept[:, 5:].reshape(-1, num_keypoints, 3)
    kps[:, :, 0] *= sx
    kps[:, :, 1] *= sy

    detections: List[Detection] = []
    for n in range(kept.shape[0]):
        bbox = BoundingBox(
            x_min=float(cx[n] - w[n] / 2),
            y_min=float(cy[n] - h[n] / 2),
            width=float(w[n]),
            height=float(h[n]),
        )
        keypoints = [Keypoint(x=float(kx), y=float(ky), confidence=float(kc)) for kx, ky, kc in kps[n]]
        detections.append(Detection(bbox=bbox, confidence=float(scores[n]), keypoints=keypoints))

    if detections and logger.isEnabledFor(logging.DEBUG):
        first = detections[0].keypoints[0]
        logger.debug("first kept anchor: joint 0 at (%.1f, %.1f) conf %.2f", first.x, first.y, first.confidence)

    return detections


class YoloPoseParser:
    """
    YOLO-pose implementation of `PoseParser`.

    decode -> suppress -> pick the highest-confidence survivor. An empty
    result means "no skeleton this frame" and is reported as None.
    """

    def __init__(self, cfg: YoloPoseConfig = YoloPoseConfig()):
        self.cfg = cfg

    def decode(self, buffer: BufferLike, image_size: Tuple[int, int]) -> List[Detection]:
        return decode(
            buffer,
            num_keypoints=self.cfg.num_keypoints,
            conf_threshold=self.cfg.conf_threshold,
            coordinate_space=self.cfg.coordinate_space,
            image_size=image_size,
            model_input_size=self.cfg.model_input_size,
        )

    def detect(self, buffer: BufferLike, image_size: Tuple[int, int]) -> List[Detection]:
        return suppress(self.decode(buffer, image_size), self.cfg.iou_threshold)

    def parse(self, buffer: BufferLike, image_size: Tuple[int, int]) -> Optional[Skeleton]:
        return self.parse_detections(self.detect(buffer, image_size))

    @staticmethod
    def parse_detections(detections: List[Detection]) -> Optional[Skeleton]:
        # Suppressed output is confidence-descending, so the first one is the best.
        if not detections:
            logger.debug("no valid detections found")
            return None

        return Skeleton.from_detection(detections[0])
