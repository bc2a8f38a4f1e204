import unittest

import numpy as np

from pose_kit.retarget import KeypointTarget, TargetSmoother, average_joints
from pose_kit.types import Keypoint, Skeleton


class TestAverageJoints(unittest.TestCase):
    def test_mean_of_selected(self) -> None:
        joints = np.array([[0, 0, 0], [2, 4, 1], [4, 8, 0.5], [100, 100, 1]], dtype=np.float32)
        avg = average_joints(joints, [1, 2])
        self.assertTrue(np.allclose(avg, [3.0, 6.0, 0.75]))

    def test_skips_zero_nan_and_out_of_range(self) -> None:
        joints = np.array([[0, 0, 0], [np.nan, 1, 1], [2, 2, 1]], dtype=np.float32)
        avg = average_joints(joints, [0, 1, 2, 7, -1])
        self.assertTrue(np.allclose(avg, [2.0, 2.0, 1.0]))

    def test_nothing_valid(self) -> None:
        joints = np.zeros((3, 3), dtype=np.float32)
        self.assertIsNone(average_joints(joints, [0, 1]))
        self.assertIsNone(average_joints(joints, []))


class TestTargetSmoother(unittest.TestCase):
    def _skeleton(self, x: float) -> Skeleton:
        return Skeleton(joints=[Keypoint(x, x, 1.0), Keypoint(x, x, 1.0)], confidence=0.9)

    def test_first_update_snaps_then_lerps(self) -> None:
        target = KeypointTarget(name="hand", indices=(0, 1), smooth_speed=10.0)
        smoother = TargetSmoother([target])

        smoother.update(self._skeleton(0.0 + 1e-3), dt=0.05)
        self.assertTrue(np.allclose(target.position, [1e-3, 1e-3, 1.0]))

        moved = smoother.update(self._skeleton(10.0), dt=0.05)
        # factor 0.05 * 10 = 0.5
        self.assertIn("hand", moved)
        self.assertAlmostEqual(float(target.position[0]), (1e-3 + 10.0) / 2, places=6)
        self.assertTrue(np.allclose(target.last_computed, [10.0, 10.0, 1.0]))

    def test_scale_offset_and_disabled(self) -> None:
        on = KeypointTarget(name="on", indices=(0,))
        off = KeypointTarget(name="off", indices=(0,), enabled=False)
        smoother = TargetSmoother([on, off], scale=0.5, offset=(1.0, 2.0, 3.0))
        moved = smoother.update(self._skeleton(4.0), dt=1.0)
        self.assertEqual(set(moved), {"on"})
        self.assertTrue(np.allclose(on.position, [3.0, 4.0, 3.5]))
        self.assertIsNone(off.position)

    def test_no_skeleton_keeps_position(self) -> None:
        target = KeypointTarget(name="hand", indices=(0,))
        smoother = TargetSmoother([target])
        smoother.update(self._skeleton(5.0), dt=0.1)
        before = target.position.copy()
        self.assertEqual(smoother.update(None, dt=0.1), {})
        self.assertTrue(np.array_equal(target.position, before))


if __name__ == "__main__":
    unittest.main()
