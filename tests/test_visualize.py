import unittest

import numpy as np

from pose_kit.types import BoundingBox, Detection, Keypoint, Skeleton
from pose_kit.visualize import draw_detections, draw_skeleton


def _skeleton() -> Skeleton:
    joints = [Keypoint(0.0, 0.0, 0.0) for _ in range(17)]
    joints[0] = Keypoint(10.0, 10.0, 0.9)
    joints[1] = Keypoint(50.0, 50.0, 0.2)
    joints[5] = Keypoint(20.0, 80.0, 0.8)
    joints[7] = Keypoint(80.0, 80.0, 0.8)
    return Skeleton(joints=joints, confidence=0.9)


class TestDrawSkeleton(unittest.TestCase):
    def test_draws_only_confident_joints(self) -> None:
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        out = draw_skeleton(img, _skeleton(), joint_threshold=0.5)

        self.assertEqual(out[10, 10].tolist(), [0, 0, 255])
        self.assertEqual(out[50, 50].tolist(), [0, 0, 0])
        # bone 5-7 passes through (50, 80)
        self.assertGreater(int(out[80, 50, 1]), 0)
        # input untouched
        self.assertEqual(int(img.sum()), 0)

    def test_threshold_is_strict(self) -> None:
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        out = draw_skeleton(img, _skeleton(), joint_threshold=0.9)
        self.assertEqual(int(out.sum()), 0)

    def test_none_skeleton_returns_copy(self) -> None:
        img = np.full((20, 20, 3), 7, dtype=np.uint8)
        out = draw_skeleton(img, None)
        self.assertTrue(np.array_equal(out, img))
        self.assertIsNot(out, img)

    def test_rejects_grayscale(self) -> None:
        with self.assertRaises(ValueError):
            draw_skeleton(np.zeros((10, 10), dtype=np.uint8), _skeleton())


class TestDrawDetections(unittest.TestCase):
    def test_box_drawn(self) -> None:
        img = np.zeros((100, 100, 3), dtype=np.uint8)
        det = Detection(bbox=BoundingBox(20, 30, 40, 40), confidence=0.8, keypoints=[])
        out = draw_detections(img, [det], show_score=False)
        self.assertEqual(out[30, 40].tolist(), [0, 255, 255])
        self.assertEqual(out[50, 40].tolist(), [0, 0, 0])


if __name__ == "__main__":
    unittest.main()
