# -*- coding: utf-8 -*-
from typing import List, Sequence, Tuple

from .types import Decoding, JointPair, KeyPt, KeypointSet

# 모델이 정한 관절 순서. JOINT_PAIRS의 인덱스와 맞물리므로 바꾸면 안 된다.
COCO17_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)

# 16개 뼈대 연결 (a, b)
JOINT_PAIRS: Tuple[Tuple[int, int], ...] = (
    # head
    (0, 1), (1, 3), (0, 2), (2, 4),
    # arms
    (5, 6), (5, 7), (7, 9), (6, 8), (8, 10),
    # torso
    (5, 11), (6, 12), (11, 12),
    # legs
    (11, 13), (12, 14), (13, 15), (14, 16),
)


def filter_keypoint_set(kpts, joint_threshold: float = 0.1,
                        pairs: Sequence[Tuple[int, int]] = JOINT_PAIRS) -> KeypointSet:
    """
    검출 1건의 (K, 3) 관절 배열에서 렌더링할 관절/선분을 고른다.

    임계치 비대칭(의도적, 그대로 유지)
      - 관절 단독  : score >  joint_threshold
      - 관절쌍 선분: 양 끝 score >= joint_threshold
    그래서 score가 정확히 임계치인 관절은 점으로는 안 찍히지만 선분 판정에는 참여한다.
    """
    out = KeypointSet()
    for x, y, s in kpts:
        if s > joint_threshold:
            out.keypoints.append(KeyPt(float(x), float(y), float(s)))

    n = len(kpts)
    for a, b in pairs:
        if a >= n or b >= n:
            continue
        sa, sb = kpts[a][2], kpts[b][2]
        if sa >= joint_threshold and sb >= joint_threshold:
            out.joint_pairs.append(JointPair(
                pt1=(float(kpts[a][0]), float(kpts[a][1])),
                pt2=(float(kpts[b][0]), float(kpts[b][1])),
                s1=float(sa),
                s2=float(sb),
            ))
    return out


def filter_keypoints(decodings: List[Decoding], joint_threshold: float = 0.1) -> List[KeypointSet]:
    """NMS 이후 검출마다 독립적으로 관절 필터를 적용한다(검출 간 영향 없음)."""
    return [filter_keypoint_set(d.keypoints, joint_threshold) for d in decodings]
