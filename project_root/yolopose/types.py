# -*- coding: utf-8 -*-
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np

from .errors import PoseDecodeError


class TensorEncoding(Enum):
    """텐서 원소 인코딩. 텐서 생성 시 한 번만 결정된다."""
    QUANT8 = "uint8"
    FLOAT32 = "float32"


@dataclass(eq=False)
class RawTensor:
    """
    추론 런타임이 넘겨주는 출력 텐서 1개(읽기 전용으로 빌려 씀).

      - data      : (H, W, C) 배열 또는 같은 원소 수의 평탄 버퍼. uint8(양자화) 또는 float32
      - scale     : 양자화 scale
      - zero_point: 양자화 zero-point
      - shape     : 명목 형상 (H, W, C). None이면 data.shape 사용
      - name      : 출력 스트림 이름(로그/디버그용)
    """
    data: np.ndarray
    scale: float = 1.0
    zero_point: float = 0.0
    shape: Optional[Tuple[int, int, int]] = None
    name: str = ""
    encoding: TensorEncoding = field(init=False, default=TensorEncoding.FLOAT32)

    def __post_init__(self):
        self.data = np.asarray(self.data)
        if self.data.dtype == np.uint8:
            self.encoding = TensorEncoding.QUANT8
        elif np.issubdtype(self.data.dtype, np.floating):
            self.encoding = TensorEncoding.FLOAT32
            self.data = self.data.astype(np.float32, copy=False)
        else:
            raise PoseDecodeError(
                f"tensor {self.name!r}: unsupported element type {self.data.dtype} (expected uint8 or float32)")

        if self.shape is None:
            if self.data.ndim != 3:
                raise PoseDecodeError(
                    f"tensor {self.name!r}: expected a 3-D (H, W, C) array, got shape {self.data.shape}")
            self.shape = tuple(int(d) for d in self.data.shape)
        else:
            self.shape = tuple(int(d) for d in self.shape)
            if len(self.shape) != 3:
                raise PoseDecodeError(f"tensor {self.name!r}: nominal shape must be (H, W, C), got {self.shape}")
            h, w, c = self.shape
            if self.data.size != h * w * c:
                raise PoseDecodeError(
                    f"tensor {self.name!r}: declared shape {self.shape} needs {h * w * c} values, "
                    f"buffer holds {self.data.size}")
            self.data = self.data.reshape(self.shape)

    @property
    def height(self) -> int:
        return self.shape[0]

    @property
    def width(self) -> int:
        return self.shape[1]

    @property
    def channels(self) -> int:
        return self.shape[2]

    @property
    def num_proposals(self) -> int:
        return self.shape[0] * self.shape[1]


@dataclass
class Detection:
    """
    단일 검출 결과.

    좌표계: 네트워크 입력 기준 정규화 좌표 [0,1], 원점은 좌상단
    - xmin, ymin    : 박스 좌상단
    - width, height : 박스 크기
    - confidence    : (0,1]. 0은 "NMS로 억제됨" 표식이지 확률 0이 아니다.
    """
    xmin: float
    ymin: float
    width: float
    height: float
    class_id: int = 0
    label: str = "person"
    confidence: float = 0.0

    @property
    def xmax(self) -> float:
        return self.xmin + self.width

    @property
    def ymax(self) -> float:
        return self.ymin + self.height

    @property
    def suppressed(self) -> bool:
        return self.confidence == 0.0


@dataclass
class KeyPt:
    x: float
    y: float
    score: float


@dataclass
class JointPair:
    """스켈레톤 선분 1개. pt1/pt2는 정규화 좌표, s1/s2는 양 끝 관절 점수."""
    pt1: Tuple[float, float]
    pt2: Tuple[float, float]
    s1: float
    s2: float


@dataclass
class KeypointSet:
    """검출 1건에서 임계치를 통과한 관절/관절쌍. 검출 간에 공유하지 않는다."""
    keypoints: List[KeyPt] = field(default_factory=list)
    joint_pairs: List[JointPair] = field(default_factory=list)


@dataclass
class Decoding:
    """
    디코딩 한 번 동안만 유효한 묶음: 검출 1건 + 그 검출의 관절.
      - keypoints: (K, 3) float 배열, 각 행 = (x_norm, y_norm, score)
    """
    detection: Detection
    keypoints: np.ndarray


@dataclass
class FrameResult:
    """한 프레임의 최종 출력(렌더링/리포트 측이 소비)."""
    detections: List[Detection] = field(default_factory=list)
    keypoint_sets: List[KeypointSet] = field(default_factory=list)

    @property
    def keypoints(self) -> List[KeyPt]:
        return [k for ks in self.keypoint_sets for k in ks.keypoints]

    @property
    def joint_pairs(self) -> List[JointPair]:
        return [p for ks in self.keypoint_sets for p in ks.joint_pairs]

    def __len__(self) -> int:
        return len(self.detections)
