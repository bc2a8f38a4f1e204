from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime backend for pose models.

    Takes an NCHW float32 blob shaped (1, 3, S, S) and returns the selected
    output as a flat, contiguous float32 buffer ready for `decode`.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=ort.SessionOptions(), providers=providers)

        model_input = self.session.get_inputs()[0]
        self.input_name = cfg.input_name or model_input.name
        self.output_name = cfg.output_name or self.session.get_outputs()[0].name
        # Dynamic axes come back as strings/None.
        self.input_shape = tuple(model_input.shape)

    @property
    def input_size(self) -> Optional[int]:
        if len(self.input_shape) != 4:
            return None
        side = self.input_shape[-1]
        return side if isinstance(side, int) else None

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray, extra_inputs: Optional[Dict[str, Any]] = None) -> np.ndarray:
        inputs: Dict[str, Any] = {self.input_name: blob}
        if extra_inputs:
            inputs.update(extra_inputs)
        output = self.session.run([self.output_name], inputs)[0]
        return np.ascontiguousarray(output, dtype=np.float32).reshape(-1)
