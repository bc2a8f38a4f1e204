import unittest

import numpy as np

from pose_kit.backends.onnxruntime_backend import OnnxRuntimeBackend
from pose_kit.postprocess import decode


class _FakeSession:
    def __init__(self, output: np.ndarray):
        self.output = output
        self.calls = []

    def run(self, output_names, inputs):
        self.calls.append((output_names, inputs))
        return [self.output, np.zeros((1,))]

    def get_providers(self):
        return ["CPUExecutionProvider"]


def _backend(output: np.ndarray, input_shape=(1, 3, 640, 640)) -> OnnxRuntimeBackend:
    # Skip __init__ so no model file or onnxruntime session is needed.
    backend = object.__new__(OnnxRuntimeBackend)
    backend.session = _FakeSession(output)
    backend.input_name = "images"
    backend.output_name = "output0"
    backend.input_shape = tuple(input_shape)
    return backend


class TestOnnxRuntimeBackend(unittest.TestCase):
    def test_infer_returns_flat_float32_buffer(self) -> None:
        raw = np.random.default_rng(0).random((1, 8400, 56))
        backend = _backend(raw)
        blob = np.zeros((1, 3, 640, 640), dtype=np.float32)

        out = backend.infer(blob, extra_inputs={"scale": 1.0})
        self.assertEqual(out.ndim, 1)
        self.assertEqual(out.dtype, np.float32)
        self.assertTrue(out.flags["C_CONTIGUOUS"])
        self.assertEqual(out.size, 8400 * 56)
        self.assertTrue(np.allclose(out[:56], raw[0, 0]))

        names, inputs = backend.session.calls[0]
        self.assertEqual(names, ["output0"])
        self.assertIs(inputs["images"], blob)
        self.assertEqual(inputs["scale"], 1.0)

    def test_output_decodes_with_pose_stride(self) -> None:
        raw = np.zeros((1, 2, 56), dtype=np.float64)
        raw[0, 1, :5] = [320, 320, 10, 10, 0.9]
        out = _backend(raw).infer(np.zeros((1, 3, 640, 640), dtype=np.float32))
        dets = decode(out, 17, 0.5, "model_input_pixels", (640, 640))
        self.assertEqual(len(dets), 1)
        self.assertEqual(len(dets[0].keypoints), 17)

    def test_input_size_static_and_dynamic(self) -> None:
        self.assertEqual(_backend(np.zeros(1), (1, 3, 640, 640)).input_size, 640)
        self.assertIsNone(_backend(np.zeros(1), (1, 3, "height", "width")).input_size)
        self.assertIsNone(_backend(np.zeros(1), (1, 3, None, None)).input_size)
        self.assertIsNone(_backend(np.zeros(1), ("batch", 3)).input_size)

    def test_providers_in_use(self) -> None:
        self.assertEqual(_backend(np.zeros(1)).providers_in_use, ("CPUExecutionProvider",))


if __name__ == "__main__":
    unittest.main()
