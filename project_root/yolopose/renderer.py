# -*- coding: utf-8 -*-
import math
from typing import Optional, Tuple

import cv2
import numpy as np

from .types import FrameResult
from .utils import compute_fit_scale


class Renderer:
    """
    FrameResult(정규화 좌표)를 실제 프레임 위에 그리는 역할.
    - 박스: 빨강 1px
    - 관절: 자홍 원(채움)
    - 관절쌍: 자홍 선
    정규화 좌표에 프레임 (W,H)를 곱해서 그리므로 네트워크 입력 크기와 프레임 크기가 달라도 된다.
    """
    FONT = cv2.FONT_HERSHEY_SIMPLEX
    BOX_COLOR = (0, 0, 255)
    POSE_COLOR = (255, 0, 255)

    def __init__(self, keypoint_radius: int = 3, line_thickness: int = 3, box_thickness: int = 1):
        self.keypoint_radius = keypoint_radius
        self.line_thickness = line_thickness
        self.box_thickness = box_thickness

    def draw(self, frame: np.ndarray, result: FrameResult) -> np.ndarray:
        """
        검출 박스/관절/선분을 그린 새 이미지를 반환한다(원본은 건드리지 않음).

        인자
          - frame : BGR 이미지 (H×W×3)
          - result: PosePostprocessor.process() 결과
        """
        out = frame.copy()
        h, w = out.shape[:2]

        for det in result.detections:
            # 억제 표식(0)은 그리지 않는다
            if det.suppressed:
                continue
            p1 = _px(det.xmin, det.ymin, w, h)
            p2 = _px(det.xmax, det.ymax, w, h)
            if p1 is None or p2 is None:
                continue
            cv2.rectangle(out, p1, p2, self.BOX_COLOR, self.box_thickness)

        for kp in result.keypoints:
            c = _px(kp.x, kp.y, w, h)
            if c is None:
                continue
            cv2.circle(out, c, self.keypoint_radius, self.POSE_COLOR, -1)

        for pr in result.joint_pairs:
            pt1 = _px(pr.pt1[0], pr.pt1[1], w, h)
            pt2 = _px(pr.pt2[0], pr.pt2[1], w, h)
            if pt1 is None or pt2 is None:
                continue
            cv2.line(out, pt1, pt2, self.POSE_COLOR, self.line_thickness)
        return out

    def draw_osd(self, img: np.ndarray, text: str):
        """좌상단 상태 텍스트(검은 외곽선 → 흰 글씨 두 번 그려 가독성 확보)."""
        cv2.putText(img, text, (12, 28), self.FONT, 0.7, (0, 0, 0), 3)
        cv2.putText(img, text, (12, 28), self.FONT, 0.7, (255, 255, 255), 1)


def show_fit(name: str, img: np.ndarray, max_w: int, max_h: int):
    h, w = img.shape[:2]
    s = compute_fit_scale(w, h, max_w, max_h)
    if s < 1.0:
        img = cv2.resize(img, (int(w * s), int(h * s)), interpolation=cv2.INTER_AREA)
    cv2.namedWindow(name, cv2.WINDOW_NORMAL)
    cv2.imshow(name, img)


# OpenCV 그리기 함수는 int32 좌표만 받는다
_PX_LIMIT = 1 << 15


def _px(x: float, y: float, w: int, h: int) -> Optional[Tuple[int, int]]:
    # 정규화 좌표 → 픽셀. NaN/inf 나 프레임에서 한참 벗어난 점은 None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    px, py = x * w, y * h
    if abs(px) > _PX_LIMIT or abs(py) > _PX_LIMIT:
        return None
    return int(px), int(py)
