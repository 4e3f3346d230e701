# -*- coding: utf-8 -*-
import numpy as np

from yolopose.keypoints import COCO17_NAMES, JOINT_PAIRS, filter_keypoint_set, filter_keypoints
from yolopose.types import Decoding, Detection


def _kpts(score=0.05):
    k = np.zeros((17, 3), dtype=np.float64)
    k[:, 0] = np.linspace(0.1, 0.9, 17)
    k[:, 1] = 0.5
    k[:, 2] = score
    return k


def test_skeleton_tables():
    assert len(COCO17_NAMES) == 17
    assert len(JOINT_PAIRS) == 16
    assert all(0 <= a < 17 and 0 <= b < 17 for a, b in JOINT_PAIRS)


def test_threshold_asymmetry_at_exact_value():
    k = _kpts()
    k[0, 2] = 0.1
    k[1, 2] = 0.1
    out = filter_keypoint_set(k, 0.1)
    # 0.1 은 관절로는 안 찍히지만 (0,1) 선분은 나온다
    assert out.keypoints == []
    assert len(out.joint_pairs) == 1
    pr = out.joint_pairs[0]
    assert pr.pt1 == (k[0, 0], k[0, 1])
    assert pr.pt2 == (k[1, 0], k[1, 1])
    assert (pr.s1, pr.s2) == (0.1, 0.1)


def test_keypoint_above_threshold_emitted():
    k = _kpts()
    k[5, 2] = 0.11
    out = filter_keypoint_set(k, 0.1)
    assert len(out.keypoints) == 1
    assert out.keypoints[0].x == k[5, 0]
    assert out.joint_pairs == []


def test_below_threshold_dropped_everywhere():
    k = _kpts()
    k[0, 2] = 0.09
    k[1, 2] = 0.09
    out = filter_keypoint_set(k, 0.1)
    assert out.keypoints == []
    assert out.joint_pairs == []


def test_pair_needs_both_ends():
    k = _kpts()
    k[11, 2] = 0.9
    k[12, 2] = 0.09
    out = filter_keypoint_set(k, 0.1)
    assert len(out.keypoints) == 1
    assert out.joint_pairs == []


def test_all_visible_gives_full_skeleton():
    out = filter_keypoint_set(_kpts(score=0.5), 0.1)
    assert len(out.keypoints) == 17
    assert len(out.joint_pairs) == 16


def test_sets_are_independent_per_detection():
    visible = Decoding(Detection(0, 0, 0.1, 0.1, confidence=0.9), _kpts(score=0.9))
    hidden = Decoding(Detection(0.5, 0.5, 0.1, 0.1, confidence=0.9), _kpts(score=0.0))
    sets = filter_keypoints([visible, hidden], 0.1)
    assert len(sets) == 2
    assert len(sets[0].keypoints) == 17
    assert sets[1].keypoints == [] and sets[1].joint_pairs == []


def test_short_keypoint_array_skips_missing_pairs():
    out = filter_keypoint_set(np.full((5, 3), 0.5), 0.1)
    assert len(out.keypoints) == 5
    assert len(out.joint_pairs) == 4


def test_pair_at_threshold_with_other_end_below():
    k = _kpts()
    k[0, 2] = 0.1
    k[1, 2] = 0.09
    out = filter_keypoint_set(k, 0.1)
    assert out.keypoints == []
    assert out.joint_pairs == []
