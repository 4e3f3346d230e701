# -*- coding: utf-8 -*-
import argparse
import logging
import sys
import time
from typing import List, Optional

import cv2
import numpy as np

from .config import AppConfig, load_config
from .frame_queue import DROP_OLDEST, FrameQueue
from .postprocess import PosePostprocessor
from .renderer import Renderer, show_fit
from .streams import ProducerThread, TensorReplaySource, open_capture
from .types import FrameResult


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="YOLOv8-pose 출력 텐서 후처리 + 오버레이")
    ap.add_argument("--record", required=True, help="프레임별 .npz 텐서 녹화 폴더")
    ap.add_argument("--config", default=None, help="JSON 설정 파일 ({'decoder': {...}, 'app': {...}})")
    ap.add_argument("--source", default=None, help="배경 영상(파일/웹캠 인덱스/URL). 없으면 녹화 안의 frame 사용")
    ap.add_argument("--num", type=int, default=None, help="처리할 최대 프레임 수")
    ap.add_argument("--output", default=None, help="결과 mp4 경로 (기본: 설정값)")
    ap.add_argument("--no-display", action="store_true", help="창 표시 안 함")
    ap.add_argument("--queue-size", type=int, default=None)
    ap.add_argument("--drop-oldest", action="store_true", help="큐가 차면 오래된 프레임을 버림(기본: 대기)")
    ap.add_argument("--score", type=float, default=None, help="점수 임계치 (기본 0.6)")
    ap.add_argument("--iou", type=float, default=None, help="NMS IoU 임계치 (기본 0.7)")
    ap.add_argument("--joint", type=float, default=None, help="관절 임계치 (기본 0.1)")
    ap.add_argument("--kpt-scale", type=float, default=None, help="키포인트 증폭 배수 (기본 4.0)")
    ap.add_argument("--per-class-nms", action="store_true", help="같은 클래스끼리만 NMS")
    ap.add_argument("--reorder", action="store_true", help="텐서를 크기 기준으로 재정렬")
    ap.add_argument("-v", "--verbose", action="store_true")
    return ap.parse_args(argv)


def build_config(args: argparse.Namespace) -> AppConfig:
    """설정 파일 → CLI 인자 순서로 덮어쓴다."""
    cfg = load_config(args.config)
    cfg.record_dir = args.record
    if args.source is not None:
        cfg.source = args.source
    if args.num is not None:
        cfg.num_frames = args.num
    if args.output is not None:
        cfg.output_path = args.output
    if args.no_display:
        cfg.show = False
    if args.queue_size is not None:
        cfg.queue_size = args.queue_size
    if args.drop_oldest:
        cfg.queue_policy = DROP_OLDEST

    dec = cfg.decoder
    if args.score is not None:
        dec.score_threshold = args.score
    if args.iou is not None:
        dec.iou_threshold = args.iou
    if args.joint is not None:
        dec.joint_threshold = args.joint
    if args.kpt_scale is not None:
        dec.keypoint_scale = args.kpt_scale
    if args.per_class_nms:
        dec.cross_class_nms = False
    if args.reorder:
        dec.reorder_tensors = True
    dec.validate()
    return cfg


def report_detections(result: FrameResult):
    for det in result.detections:
        print(f"Detection: {det.label}, Confidence: {det.confidence * 100.0:.2f}%")


def print_statistics(frame_count: int, elapsed: float, name: str):
    print("\n-I-----------------------------------------------")
    print(f"-I- {name}")
    print("-I-----------------------------------------------")
    print("-I- Postprocess")
    print("-I-----------------------------------------------")
    if frame_count > 0 and elapsed > 0:
        fps = frame_count / elapsed
        print(f"-I- Frames:       {frame_count}")
        print(f"-I- Average FPS:  {fps:.2f}")
        print(f"-I- Total time:   {elapsed:.3f} sec")
        print(f"-I- Latency:      {1000.0 / fps:.3f} ms")
    else:
        print("-I- No frames processed")
    print("-I-----------------------------------------------")


def run(cfg: AppConfig) -> int:
    """
    생산자 스레드(녹화 재생) → FrameQueue → 디코딩 → 렌더링/저장.
    반환: 처리한 프레임 수
    """
    source = TensorReplaySource(cfg.record_dir, limit=cfg.num_frames)
    print(f"[INFO] {len(source)} frames in {cfg.record_dir}")

    post = PosePostprocessor(cfg.decoder)
    renderer = Renderer()
    frames = FrameQueue(cfg.queue_size, cfg.queue_policy)
    producer = ProducerThread(source, frames)

    backdrop = None
    if cfg.source:
        backdrop = open_capture(cfg.source)
        if not backdrop.isOpened():
            raise RuntimeError(f"배경 영상을 열 수 없습니다: {cfg.source}")

    writer = None
    count = 0
    t0 = time.time()
    producer.start()
    try:
        for tf in frames:
            result = post.process(tf.tensors)
            report_detections(result)

            image = None
            if backdrop is not None:
                ok, image = backdrop.read()
                if not ok:
                    image = None
            if image is None:
                image = tf.image
            if image is None:
                image = np.zeros((cfg.decoder.network_height, cfg.decoder.network_width, 3), dtype=np.uint8)

            out = renderer.draw(image, result)
            renderer.draw_osd(out, f"frame {tf.index}  persons={len(result)}")

            if cfg.output_path:
                if writer is None:
                    h, w = out.shape[:2]
                    writer = cv2.VideoWriter(cfg.output_path, cv2.VideoWriter_fourcc(*"mp4v"), cfg.output_fps, (w, h))
                writer.write(out)

            count += 1
            if cfg.show:
                show_fit(cfg.win_name, out, cfg.display_max_w, cfg.display_max_h)
                k = cv2.waitKey(1) & 0xFF
                if k in (27, ord('q'), ord('Q')):
                    break
    finally:
        producer.stop()
        producer.join(timeout=2.0)
        if writer is not None:
            writer.release()
            print(f"[Saved] {cfg.output_path}")
        if backdrop is not None:
            backdrop.release()
        if cfg.show:
            cv2.destroyAllWindows()

    if producer.error is not None:
        raise producer.error
    print_statistics(count, time.time() - t0, cfg.record_dir)
    if frames.dropped:
        print(f"[INFO] dropped {frames.dropped} frames (queue policy={cfg.queue_policy})")
    return count


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    try:
        cfg = build_config(args)
        run(cfg)
    except (ValueError, OSError, RuntimeError) as e:
        # PoseDecodeError / DecoderConfigError 는 ValueError
        print(f"[ERR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
