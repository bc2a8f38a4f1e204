from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .config import CoordinateSpace, YoloPoseConfig
from .postprocess import PoseParser, YoloPoseParser
from .types import Detection, Skeleton


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", ".git"),
) -> Path:
    """
    Best-effort project root discovery, so `models/yolov8n-pose.onnx` resolves
    the same way from scripts and tests.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Absolute paths are returned as-is; relative ones resolve against `root`,
    or the project root when `root` is "auto"/None.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    # (width, height) of the frame the coordinates are mapped back to.
    image_size: Tuple[int, int]


class PosePipeline:
    """
    frame -> stretch to model input -> inference -> parser.

    The frame is resized to a square without letterboxing, so raw model
    coordinates map back to the frame with a per-axis scale only.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        *,
        parser: Optional[PoseParser] = None,
        input_size: int = 640,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
    ):
        if input_size <= 0:
            raise ValueError("input_size must be > 0")
        if parser is None:
            parser = YoloPoseParser(YoloPoseConfig(model_input_size=int(input_size)))
        elif (
            isinstance(parser, YoloPoseParser)
            and parser.cfg.coordinate_space is CoordinateSpace.MODEL_INPUT_PIXELS
            and parser.cfg.model_input_size != input_size
        ):
            raise ValueError(
                f"parser scales from a {parser.cfg.model_input_size}px input but frames are resized to {input_size}px"
            )
        self._infer_fn = infer_fn
        self.parser = parser
        self.input_size = int(input_size)
        self.backend = backend
        self.backend_name = backend_name

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        h, w = image_bgr.shape[:2]
        img = image_bgr
        if (w, h) != (self.input_size, self.input_size):
            try:
                import cv2  # type: ignore
            except Exception as e:  # pragma: no cover
                raise ImportError("OpenCV is required to resize frames. Install with `pip install opencv-python`.") from e
            img = cv2.resize(image_bgr, (self.input_size, self.input_size), interpolation=cv2.INTER_LINEAR)

        # BGR -> RGB, normalize, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])
        return PreprocessResult(blob=blob, image_size=(w, h))

    def detect(self, image_bgr: np.ndarray) -> List[Detection]:
        if not isinstance(self.parser, YoloPoseParser):
            raise TypeError("detect() needs a YoloPoseParser; use __call__ for other parsers.")
        prep = self.preprocess(image_bgr)
        return self.parser.detect(self._infer_fn(prep.blob), prep.image_size)

    def __call__(self, image_bgr: np.ndarray) -> Optional[Skeleton]:
        prep = self.preprocess(image_bgr)
        skeleton = self.parser.parse(self._infer_fn(prep.blob), prep.image_size)
        if skeleton is not None:
            logger.debug("skeleton with %d joints (conf %.2f)", len(skeleton.joints), skeleton.confidence)
        return skeleton


def load_pipeline(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    pose_cfg: YoloPoseConfig = YoloPoseConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
) -> PosePipeline:
    """
    Create a pipeline for a pose model on disk.

        pipe = load_pipeline("models/yolov8n-pose.onnx")
        skeleton = pipe(frame)

    The model input side is taken from the ONNX graph when it is static,
    otherwise from `pose_cfg.model_input_size`; the parser always scales
    with the side frames are actually resized to.
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    if chosen.lower() == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_name=onnx_output_name,
            ),
        )
        input_size = ort_backend.input_size or pose_cfg.model_input_size
        if input_size != pose_cfg.model_input_size:
            logger.info("model input is %d, overriding configured %d", input_size, pose_cfg.model_input_size)
            pose_cfg = replace(pose_cfg, model_input_size=input_size)
        logger.info("loaded %s with %s", resolved.name, ",".join(ort_backend.providers_in_use))
        return PosePipeline(
            ort_backend.infer,
            parser=YoloPoseParser(pose_cfg),
            input_size=input_size,
            backend=ort_backend,
            backend_name="onnxruntime",
        )

    raise ValueError(f"Unsupported backend: {backend!r}")
