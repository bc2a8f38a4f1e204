from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict


class CoordinateSpace(str, Enum):
    """
    Convention of the raw coordinates emitted by the model.

    NORMALIZED: values in [0, 1] relative to the image.
    MODEL_INPUT_PIXELS: values in [0, model_input_size] (e.g. 0-640).
    """

    NORMALIZED = "normalized"
    MODEL_INPUT_PIXELS = "model_input_pixels"


@dataclass(frozen=True)
class YoloPoseConfig:
    # COCO=17, BlazePose=33
    num_keypoints: int = 17
    conf_threshold: float = 0.5
    iou_threshold: float = 0.45
    coordinate_space: CoordinateSpace = CoordinateSpace.MODEL_INPUT_PIXELS
    # Only used with MODEL_INPUT_PIXELS.
    model_input_size: int = 640

    def __post_init__(self) -> None:
        if self.num_keypoints <= 0:
            raise ValueError("num_keypoints must be > 0")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.model_input_size <= 0:
            raise ValueError("model_input_size must be > 0")
        if not isinstance(self.coordinate_space, CoordinateSpace):
            raise ValueError(f"Unknown coordinate_space: {self.coordinate_space!r}")

    @property
    def stride(self) -> int:
        return 5 + self.num_keypoints * 3


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    if key not in payload:
        raise ValueError(f"Missing required key: {key}")
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def parse_coordinate_space(value: object) -> CoordinateSpace:
    if isinstance(value, CoordinateSpace):
        return value
    if not isinstance(value, str):
        raise ValueError("coordinate_space must be a string")
    try:
        return CoordinateSpace(value.strip().lower())
    except ValueError as exc:
        allowed = [c.value for c in CoordinateSpace]
        raise ValueError(f"coordinate_space must be one of {allowed}, got {value!r}") from exc


def load_pose_config(path: Path) -> YoloPoseConfig:
    """
    Load a parser profile from JSON. Keys missing from the file keep the
    `YoloPoseConfig` defaults.

        {
          "schema_version": 1,
          "num_keypoints": 17,
          "conf_threshold": 0.5,
          "iou_threshold": 0.45,
          "coordinate_space": "model_input_pixels",
          "model_input_size": 640
        }
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Pose config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid pose config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Pose config must be a JSON object")

    allowed = {
        "schema_version",
        "num_keypoints",
        "conf_threshold",
        "iou_threshold",
        "coordinate_space",
        "model_input_size",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown pose config keys: {unknown}")

    schema_version = _require_int(payload, "schema_version")
    if schema_version != 1:
        raise ValueError("pose config schema_version must be 1")

    kwargs: Dict[str, Any] = {}
    for key in ("num_keypoints", "model_input_size"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    for key in ("conf_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    if "coordinate_space" in payload:
        kwargs["coordinate_space"] = parse_coordinate_space(payload["coordinate_space"])

    return YoloPoseConfig(**kwargs)
