# -*- coding: utf-8 -*-
from typing import Optional, Union

import numpy as np

from .types import RawTensor, TensorEncoding

Number = Union[int, float, np.ndarray]


def dequantize(raw: Number, scale: float, zero_point: float) -> Number:
    """
    고정소수점 값 → 실수: (raw - zero_point) * scale

    - 스칼라를 넣으면 float, 배열을 넣으면 float32 배열을 돌려준다.
    - 실패 경로 없음(전 함수).
    """
    if np.isscalar(raw):
        return (float(raw) - float(zero_point)) * float(scale)
    arr = np.asarray(raw, dtype=np.float32)
    return (arr - np.float32(zero_point)) * np.float32(scale)


def _rows(t: RawTensor, select: Optional[np.ndarray]) -> np.ndarray:
    # (H, W, C) → (H*W, C), row-major 평탄화 = 앵커 순서
    flat = t.data.reshape(t.num_proposals, t.channels)
    return flat if select is None else flat[select]


def tensor_to_float(t: RawTensor, select: Optional[np.ndarray] = None) -> np.ndarray:
    """
    박스 분포/클래스 점수 텐서용 적재 경로. 반환: (N, C) float32

      - QUANT8  → 역양자화
      - FLOAT32 → 이미 실수이므로 그대로 (두 번 역양자화하지 않음)
      - select  : 앵커 인덱스 배열. 주면 그 행만 꺼내서 변환한다(걸러진 앵커만 비용 지불)
    """
    rows = _rows(t, select)
    if t.encoding is TensorEncoding.QUANT8:
        return dequantize(rows, t.scale, t.zero_point)
    return rows


def keypoints_to_float(t: RawTensor, divisor: float = 255.0,
                       select: Optional[np.ndarray] = None) -> np.ndarray:
    """
    키포인트 텐서용 적재 경로: 인코딩과 무관하게 value / divisor 로만 정규화한다. 반환: (N, C) float32
    양자화 공식((raw - zp) * scale)은 적용하지 않는다.
    """
    return _rows(t, select).astype(np.float32) / np.float32(divisor)
