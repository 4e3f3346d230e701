# -*- coding: utf-8 -*-
import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .anchors import grid_size
from .config import DecoderConfig
from .errors import PoseDecodeError
from .labels import resolve_label
from .quant import keypoints_to_float, tensor_to_float
from .types import Decoding, Detection, RawTensor
from .utils import chunks, clamp01, sigmoid, softmax_rows

logger = logging.getLogger(__name__)

# 헤드 1개 = (boxes, scores, keypoints)
Head = Tuple[RawTensor, RawTensor, RawTensor]

TENSORS_PER_HEAD = 3


def group_heads(tensors: Sequence[RawTensor]) -> List[Head]:
    """평탄한 텐서 목록을 헤드별 (boxes, scores, keypoints) 묶음으로 나눈다."""
    if len(tensors) % TENSORS_PER_HEAD != 0:
        raise PoseDecodeError(
            f"got {len(tensors)} tensors, expected a multiple of {TENSORS_PER_HEAD} "
            f"(boxes, scores, keypoints per head)")
    return [tuple(c) for c in chunks(list(tensors), TENSORS_PER_HEAD)]


def order_tensors(tensors: Sequence[RawTensor], cfg: DecoderConfig) -> List[RawTensor]:
    """
    순서가 보장되지 않는 출력 텐서들을 stride 순서의 (boxes, scores, keypoints) 배열로 재정렬한다.

    매칭 기준
      - 공간 크기: (network_h // stride, network_w // stride)
      - 채널 수  : boxes=4*(reg+1), scores=num_classes, keypoints=K*3

    남거나 모자라는 텐서가 있으면 PoseDecodeError.
    """
    remaining = list(tensors)
    kinds = (("boxes", cfg.box_channels), ("scores", cfg.num_classes), ("keypoints", cfg.keypoint_channels))
    ordered: List[RawTensor] = []
    for stride in cfg.strides:
        rows, cols = grid_size(int(stride), cfg.network_width, cfg.network_height)
        for kind, channels in kinds:
            idx = next((k for k, t in enumerate(remaining) if t.shape == (rows, cols, channels)), None)
            if idx is None:
                raise PoseDecodeError(
                    f"no {kind} tensor of shape {(rows, cols, channels)} for stride {stride}")
            ordered.append(remaining.pop(idx))
    if remaining:
        names = [t.name or str(t.shape) for t in remaining]
        raise PoseDecodeError(f"unexpected extra tensors: {names}")
    return ordered


def validate_head(head: Head, stride: int, cfg: DecoderConfig, index: int = 0):
    """헤드 1개의 텐서 형상이 설정/격자와 맞는지 확인한다."""
    boxes, scores, kpts = head
    rows, cols = grid_size(int(stride), cfg.network_width, cfg.network_height)
    expected = (
        (boxes, cfg.box_channels, "boxes"),
        (scores, cfg.num_classes, "scores"),
        (kpts, cfg.keypoint_channels, "keypoints"),
    )
    for t, channels, kind in expected:
        if t.channels != channels:
            raise PoseDecodeError(
                f"head {index} {kind} tensor {t.name!r}: expected {channels} channels, got {t.channels}")
        if (t.height, t.width) != (rows, cols):
            raise PoseDecodeError(
                f"head {index} {kind} tensor {t.name!r}: grid {t.height}x{t.width}, "
                f"stride {stride} expects {rows}x{cols}")


def gather_scores(heads: Sequence[Head], num_classes: int) -> np.ndarray:
    """모든 헤드의 점수 텐서를 역양자화해 (전체 앵커 수, num_classes) 로 이어 붙인다."""
    parts = [tensor_to_float(s).reshape(-1, num_classes) for _, s, _ in heads]
    if not parts:
        return np.zeros((0, num_classes), dtype=np.float32)
    return np.concatenate(parts, axis=0)


def decode_boxes(dist: np.ndarray, centers: np.ndarray, stride: int,
                 network_width: int, network_height: int) -> np.ndarray:
    """
    분포 기반 박스 회귀 복원.

    인자
      - dist    : (N, 4, bins) 실수 분포 로짓 (이미 역양자화됨)
      - centers : (N, 4) 앵커 중심 (cx, cy, cx, cy)

    처리
      1) 4개 행 각각 softmax
      2) 기대 거리 = Σ p[k] * k   (k = 0..bins-1)
      3) × stride → 픽셀 단위
      4) left/top 은 중심에서 빼고, right/bottom 은 더함 → (xmin, ymin, xmax, ymax)
      5) 네트워크 크기로 정규화 후 (xmin, ymin, w, h)

    반환: (N, 4) 정규화 (xmin, ymin, width, height)
    """
    probs = softmax_rows(dist)
    bins = np.arange(dist.shape[-1], dtype=np.float32)
    distances = (probs * bins).sum(axis=-1) * stride  # (N, 4)
    distances[:, :2] *= -1
    decoded = centers + distances

    xmin = decoded[:, 0] / network_width
    ymin = decoded[:, 1] / network_height
    w = (decoded[:, 2] - decoded[:, 0]) / network_width
    h = (decoded[:, 3] - decoded[:, 1]) / network_height
    return np.stack([xmin, ymin, w, h], axis=1)


def decode_keypoints(kpts: np.ndarray, centers: np.ndarray, stride: int,
                     keypoint_scale: float = 4.0) -> Tuple[np.ndarray, np.ndarray]:
    """
    키포인트 복원.

    인자
      - kpts   : (N, K, 3) 이미 [0,1]로 정규화된 (x_off, y_off, raw_score)
      - centers: (N, 4) 앵커 중심

    처리
      - xy' = stride * (xy * keypoint_scale - 0.5) + (cx, cy)
      - score = sigmoid(raw_score)

    반환: (N, K, 2) 픽셀 좌표, (N, K) 점수
    """
    xy = kpts[..., :2] * keypoint_scale
    xy = stride * (xy - 0.5) + centers[:, None, :2]
    scores = sigmoid(kpts[..., 2])
    return xy, scores


def _clamp_boxes(boxes: np.ndarray) -> np.ndarray:
    xyxy = np.concatenate([boxes[:, :2], boxes[:, :2] + boxes[:, 2:]], axis=1)
    xyxy = clamp01(xyxy)
    return np.concatenate([xyxy[:, :2], xyxy[:, 2:] - xyxy[:, :2]], axis=1)


def decode_boxes_and_keypoints(heads: Sequence[Head], scores: np.ndarray, cfg: DecoderConfig,
                               centers: Sequence[np.ndarray]) -> List[Decoding]:
    """
    헤드 순서 → 앵커 순서로 점수를 보고, 임계치 이상인 앵커만 박스/키포인트를 복원한다.

    반환 순서 = 헤드 순서, 그 안에서 앵커(row-major) 순서. NMS는 이 순서를 그대로 쓴다.

    클래스
      - num_classes == 1 → class_id 0 고정
      - 그 외            → 클래스 채널 argmax, confidence = 그 채널 값
    """
    decodings: List[Decoding] = []
    bins = cfg.regression_length + 1
    offset = 0
    for i, (box_t, _, kpt_t) in enumerate(heads):
        stride = int(cfg.strides[i])
        n = box_t.num_proposals
        head_scores = scores[offset:offset + n]
        offset += n

        if cfg.num_classes == 1:
            conf = head_scores[:, 0]
            class_ids: Optional[np.ndarray] = None
        else:
            class_ids = np.argmax(head_scores, axis=1)
            conf = head_scores[np.arange(n), class_ids]

        keep = np.flatnonzero(conf >= cfg.score_threshold)
        logger.debug("head %d (stride %d): %d proposals, %d above score %.3f",
                     i, stride, n, keep.size, cfg.score_threshold)
        if keep.size == 0:
            continue

        dist = tensor_to_float(box_t, select=keep).reshape(-1, 4, bins)
        head_centers = centers[i][keep]
        boxes = decode_boxes(dist, head_centers, stride, cfg.network_width, cfg.network_height)

        kpts = keypoints_to_float(kpt_t, cfg.keypoint_divisor, select=keep).reshape(-1, cfg.num_keypoints, 3)
        kpt_xy, kpt_scores = decode_keypoints(kpts, head_centers, stride, cfg.keypoint_scale)
        kpt_xy = kpt_xy / np.array([cfg.network_width, cfg.network_height], dtype=np.float64)

        if cfg.clamp_coordinates:
            boxes = _clamp_boxes(boxes)
            kpt_xy = clamp01(kpt_xy)

        for row, anchor in enumerate(keep):
            cid = 0 if class_ids is None else int(class_ids[anchor])
            det = Detection(
                xmin=float(boxes[row, 0]),
                ymin=float(boxes[row, 1]),
                width=float(boxes[row, 2]),
                height=float(boxes[row, 3]),
                class_id=cid,
                label=resolve_label(cid, cfg.labels, cfg.num_classes),
                confidence=float(conf[anchor]),
            )
            kp = np.concatenate([kpt_xy[row], kpt_scores[row][:, None]], axis=1)
            decodings.append(Decoding(detection=det, keypoints=kp))
    return decodings
