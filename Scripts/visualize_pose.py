import argparse
import logging
from pathlib import Path
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

from pose_kit import (
    CoordinateSpace,
    YoloPoseConfig,
    draw_detections,
    draw_skeleton,
    load_pipeline,
    load_pose_config,
)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run a YOLO pose model and draw the detected skeleton.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="models/yolov8n-pose.onnx", help="Path to a YOLO pose model (.onnx).")
    parser.add_argument("--config", default=None, help="Optional JSON pose config (overrides the flags below).")
    parser.add_argument("--keypoints", type=int, default=17, help="Keypoints per detection (COCO=17).")
    parser.add_argument("--imgsz", type=int, default=640, help="Model input size (square).")
    parser.add_argument("--conf", type=float, default=0.5, help="Detection confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument(
        "--coords",
        choices=[c.value for c in CoordinateSpace],
        default=CoordinateSpace.MODEL_INPUT_PIXELS.value,
        help="How the model expresses coordinates.",
    )
    parser.add_argument("--joint-conf", type=float, default=0.5, help="Per-joint confidence needed to draw it.")
    parser.add_argument("--boxes", action="store_true", help="Also draw every surviving detection box.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with the overlay.")
    parser.add_argument("--out", default=None, help="Optional output path (image or video) to save the overlay.")
    parser.add_argument("--every", type=int, default=1, help="Process every Nth frame for video/webcam.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="DEBUG / INFO / WARNING.")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    log = logging.getLogger("visualize_pose")

    if args.config:
        pose_cfg = load_pose_config(Path(args.config))
    else:
        pose_cfg = YoloPoseConfig(
            num_keypoints=args.keypoints,
            conf_threshold=args.conf,
            iou_threshold=args.iou,
            coordinate_space=CoordinateSpace(args.coords),
            model_input_size=args.imgsz,
        )

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    pipeline = load_pipeline(model_path=args.model, pose_cfg=pose_cfg, onnx_providers=onnx_providers)

    def render(frame):
        detections = pipeline.detect(frame)
        skeleton = pipeline.parser.parse_detections(detections)
        vis = draw_skeleton(frame, skeleton, joint_threshold=args.joint_conf)
        if args.boxes:
            vis = draw_detections(vis, detections)
        return vis, skeleton, len(detections)

    image_path = args.image or (None if (args.video is not None or args.webcam is not None) else "Media/person.jpg")

    if image_path is not None:
        img = cv2.imread(image_path)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {image_path}")

        vis, skeleton, n = render(img)
        if skeleton is None:
            log.info("no person detected")
        else:
            log.info("%d detections, best conf %.2f", n, skeleton.confidence)
            for k, joint in enumerate(skeleton.joints):
                print(k, round(joint.x, 1), round(joint.y, 1), round(joint.confidence, 3))

        if args.out:
            ok = cv2.imwrite(args.out, vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {args.out}")

        if args.show:
            cv2.imshow("pose", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()
        return 0

    if args.every < 1:
        raise ValueError("--every must be >= 1")
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    writer = None
    processed = 0
    missed = 0
    try:
        for frame, fps in _iter_frames(args.video, args.webcam, args.every):
            vis, skeleton, _ = render(frame)
            if skeleton is None:
                missed += 1

            if args.out and writer is None:
                writer = _open_writer(args.out, fps, vis.shape[1], vis.shape[0])
            if writer is not None:
                writer.write(vis)

            if args.show:
                cv2.imshow("pose", vis)
                if cv2.waitKey(1) & 0xFF in (27, ord("q")):
                    break

            processed += 1
            if args.max_frames and processed >= args.max_frames:
                break
    finally:
        if writer is not None:
            writer.release()
        if args.show:
            cv2.destroyAllWindows()

    log.info("processed %d frames, %d without a skeleton", processed, missed)
    return 0


def _iter_frames(video: Optional[str], webcam: Optional[int], every: int) -> Iterator[Tuple[np.ndarray, float]]:
    """Yield (frame, source fps) for every Nth frame of a video file or webcam."""
    source = video if video is not None else (webcam or 0)
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        raise FileNotFoundError(f"Could not open video source: {source}")

    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    try:
        idx = 0
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                return
            if idx % every == 0:
                yield frame, fps
            idx += 1
    finally:
        cap.release()


def _open_writer(path: str, fps: float, width: int, height: int):
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"mp4v"), fps, (width, height))
    if not writer.isOpened():
        raise RuntimeError(f"Failed to open video writer: {path}")
    return writer


if __name__ == "__main__":
    raise SystemExit(main())
