# -*- coding: utf-8 -*-
from functools import lru_cache
from typing import List, Sequence, Tuple

import numpy as np


def grid_size(stride: int, network_width: int, network_height: int) -> Tuple[int, int]:
    """stride 레벨의 격자 크기 (rows, cols). 정수 나눗셈."""
    return network_height // stride, network_width // stride


def get_centers(strides: Sequence[int], network_width: int, network_height: int) -> List[np.ndarray]:
    """
    stride 레벨별 앵커 중심 좌표를 만든다.

    반환
      - centers[i]: (rows*cols, 4) float64 배열, 각 행 = (cx, cy, cx, cy) 픽셀 좌표

    순서(중요)
      - 바깥 루프 = row, 안쪽 루프 = col (row-major)
      - 텐서 (H, W, C) 를 (H*W, C) 로 평탄화한 순서와 같아야 박스가 어긋나지 않는다.

    중심 = ((col + 0.5) * stride, (row + 0.5) * stride)
    (cx, cy, cx, cy) 로 두 번 쓰는 이유: 박스 복원 시 앞 두 성분은 빼고 뒤 두 성분은 더하면 끝.
    """
    centers: List[np.ndarray] = []
    for s in strides:
        s = int(s)
        rows, cols = grid_size(s, network_width, network_height)
        yy, xx = np.meshgrid(np.arange(rows), np.arange(cols), indexing="ij")
        ct_x = (xx.reshape(-1) + 0.5) * s
        ct_y = (yy.reshape(-1) + 0.5) * s
        centers.append(np.stack([ct_x, ct_y, ct_x, ct_y], axis=1))
    return centers


@lru_cache(maxsize=16)
def _cached_centers(strides: Tuple[int, ...], network_width: int, network_height: int) -> Tuple[np.ndarray, ...]:
    out = []
    for c in get_centers(strides, network_width, network_height):
        c.setflags(write=False)
        out.append(c)
    return tuple(out)


class AnchorCache:
    """
    앵커 중심 격자 캐시.
    네트워크 크기/stride만의 순수 함수이므로 한 번 만들어 프레임/스레드 간 읽기 전용으로 공유한다.
    """
    def get(self, strides: Sequence[int], network_width: int, network_height: int) -> Tuple[np.ndarray, ...]:
        return _cached_centers(tuple(int(s) for s in strides), int(network_width), int(network_height))

    @staticmethod
    def clear():
        _cached_centers.cache_clear()
