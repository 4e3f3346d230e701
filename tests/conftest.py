# -*- coding: utf-8 -*-
"""테스트 공용 헬퍼: 작은 네트워크(64x64) 설정과 합성 출력 텐서 생성기."""
from typing import Dict, List, Sequence

import numpy as np
import pytest

from yolopose.anchors import AnchorCache
from yolopose.config import DecoderConfig
from yolopose.types import RawTensor

# softmax 후 사실상 one-hot 이 되는 로짓
PEAK = 100.0

# stride 8 격자에서 (row 1, col 2) → 앵커 10, 중심 (20, 12)
HIT_DEFAULT = dict(head=0, row=1, col=2, score=0.9, dist=(1, 2, 3, 4), kpt=(63.75, 0.0, 0.0))


def small_config(**overrides) -> DecoderConfig:
    """64x64 입력, stride (8,16,32) → 격자 8x8, 4x4, 2x2."""
    kw = dict(network_width=64, network_height=64)
    kw.update(overrides)
    return DecoderConfig(**kw).validate()


def build_heads(cfg: DecoderConfig, hits: Sequence[Dict] = (), quantized: bool = False) -> List[RawTensor]:
    """
    헤드마다 (boxes, scores, keypoints) 텐서를 만든다. 배경은 점수 0.

    hits 항목
      - head, row, col : 위치
      - score          : 클래스 점수 (0~1)
      - class_id       : 기본 0
      - dist           : (left, top, right, bottom) bin 인덱스. 그 bin에 PEAK 로짓
      - kpt            : (x_raw, y_raw, s_raw) 0~255, 모든 관절에 같은 값
    quantized=True 면 uint8 텐서(점수만 scale=1/255)로 만든다.
    """
    bins = cfg.regression_length + 1
    tensors: List[RawTensor] = []
    for h, stride in enumerate(cfg.strides):
        rows, cols = cfg.network_height // stride, cfg.network_width // stride
        boxes = np.zeros((rows, cols, cfg.box_channels), dtype=np.float32)
        scores = np.zeros((rows, cols, cfg.num_classes), dtype=np.float32)
        kpts = np.zeros((rows, cols, cfg.keypoint_channels), dtype=np.float32)
        for hit in hits:
            if hit.get("head", 0) != h:
                continue
            r, c = hit["row"], hit["col"]
            for side, k in enumerate(hit.get("dist", (1, 1, 1, 1))):
                boxes[r, c, side * bins + k] = PEAK
            scores[r, c, hit.get("class_id", 0)] = hit["score"]
            if "kpt" in hit:
                kpts[r, c, :] = np.tile(np.asarray(hit["kpt"], dtype=np.float32), cfg.num_keypoints)

        if quantized:
            tensors += [
                RawTensor(boxes.astype(np.uint8), name=f"boxes{h}"),
                RawTensor(np.round(scores * 255).astype(np.uint8), scale=1 / 255.0, name=f"scores{h}"),
                RawTensor(kpts.astype(np.uint8), name=f"kpts{h}"),
            ]
        else:
            tensors += [
                RawTensor(boxes, name=f"boxes{h}"),
                RawTensor(scores, name=f"scores{h}"),
                RawTensor(kpts, name=f"kpts{h}"),
            ]
    return tensors


@pytest.fixture
def cfg():
    return small_config()


@pytest.fixture(autouse=True)
def _fresh_anchor_cache():
    AnchorCache.clear()
    yield
    AnchorCache.clear()
