"""
Lightweight YOLO-pose post-processing helpers.

Turns the flat output of a pose model into de-duplicated detections and a
skeleton. The core (decode + NMS) needs only NumPy; OpenCV is used for
resizing/drawing and ONNX Runtime for the optional inference backend.
"""

from .types import BoundingBox, Detection, InvalidBufferShape, Keypoint, Skeleton
from .config import CoordinateSpace, YoloPoseConfig, load_pose_config
from .nms import NMSConfig, iou, nms, suppress
from .postprocess import PoseParser, YoloPoseParser, decode
from .retarget import KeypointTarget, TargetSmoother, average_joints
from .runtime import PosePipeline, load_pipeline, find_project_root, resolve_path
from .visualize import COCO_BONES, draw_detections, draw_skeleton

__all__ = [
    "BoundingBox",
    "Detection",
    "InvalidBufferShape",
    "Keypoint",
    "Skeleton",
    "CoordinateSpace",
    "YoloPoseConfig",
    "load_pose_config",
    "NMSConfig",
    "iou",
    "nms",
    "suppress",
    "PoseParser",
    "YoloPoseParser",
    "decode",
    "KeypointTarget",
    "TargetSmoother",
    "average_joints",
    "PosePipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "COCO_BONES",
    "draw_detections",
    "draw_skeleton",
]
