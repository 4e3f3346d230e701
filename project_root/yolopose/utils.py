# -*- coding: utf-8 -*-
from typing import List, Sequence

import numpy as np

from .types import Decoding, Detection


def softmax_rows(x: np.ndarray) -> np.ndarray:
    """
    마지막 축(행) 기준 softmax. 행별 최댓값을 빼고 exp → 수치 안정.
    (N, 4, bins) 같은 배치 입력도 그대로 받는다.
    """
    x = np.asarray(x, dtype=np.float32)
    e = np.exp(x - x.max(axis=-1, keepdims=True))
    return e / e.sum(axis=-1, keepdims=True)


def sigmoid(x: np.ndarray) -> np.ndarray:
    x = np.asarray(x, dtype=np.float32)
    return 1.0 / (1.0 + np.exp(-x))


def iou_xywh(a: Detection, b: Detection) -> float:
    """
    두 검출 박스의 IoU(Intersection over Union), 0~1.
    ─ 입력: Detection (xmin, ymin, width, height; 정규화 좌표)
    ─ 교집합 폭/높이가 음수면 0으로 클램프
    ─ IoU = inter / (area_a + area_b - inter)

    엣지 케이스
      - 접점만 닿는 경우(폭 또는 높이=0) → inter=0 → IoU=0
      - 합집합 면적이 0(퇴화 박스 두 개) → 0
    """
    iw = max(0.0, min(a.xmax, b.xmax) - max(a.xmin, b.xmin))
    ih = max(0.0, min(a.ymax, b.ymax) - max(a.ymin, b.ymin))
    inter = iw * ih
    area_a = (a.xmax - a.xmin) * (a.ymax - a.ymin)
    area_b = (b.xmax - b.xmin) * (b.ymax - b.ymin)
    union = area_a + area_b - inter
    if union <= 0:
        return 0.0
    return inter / union


def nms(decodings: List[Decoding], iou_th: float = 0.7, cross_classes: bool = False) -> List[Decoding]:
    """
    탐욕적(greedy) NMS. 신뢰도 정렬 없이 **디코딩 순서(헤드 → 앵커)** 그대로 훑는다.

    절차
      1) i = 0..n-1 에 대해, i가 아직 살아있으면(conf != 0)
      2) j > i 중 살아있고, (cross_classes 또는 같은 클래스)이며 IoU(i, j) >= iou_th 인 j의
         confidence를 0으로 만든다(억제 표식, 입력 리스트를 제자리 수정)
      3) conf != 0 인 것만 원래 상대 순서로 반환

    - 같은 박스/점수 두 개면 인덱스가 작은 쪽이 남는다.
    - O(N^2). 프레임당 수십 개 수준이면 충분하다.
    """
    n = len(decodings)
    for i in range(n):
        di = decodings[i].detection
        if di.confidence == 0.0:
            continue
        for j in range(i + 1, n):
            dj = decodings[j].detection
            if dj.confidence == 0.0:
                continue
            if not (cross_classes or di.class_id == dj.class_id):
                continue
            if iou_xywh(di, dj) >= iou_th:
                dj.confidence = 0.0
    return [d for d in decodings if d.detection.confidence != 0.0]


def clamp01(values: np.ndarray) -> np.ndarray:
    return np.clip(values, 0.0, 1.0)


def compute_fit_scale(w: int, h: int, max_w: int, max_h: int) -> float:
    return min(max_w / w, max_h / h, 1.0)


def chunks(items: Sequence, size: int) -> List[Sequence]:
    return [items[i:i + size] for i in range(0, len(items), size)]
