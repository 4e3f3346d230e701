# -*- coding: utf-8 -*-
import numpy as np
import pytest

from yolopose.types import Decoding, Detection
from yolopose.utils import chunks, compute_fit_scale, iou_xywh, nms, sigmoid, softmax_rows


def _dec(xmin, ymin, w, h, conf=0.9, class_id=0):
    return Decoding(
        detection=Detection(xmin, ymin, w, h, class_id=class_id, confidence=conf),
        keypoints=np.zeros((17, 3)),
    )


def test_softmax_rows_sum_to_one():
    x = np.random.default_rng(0).normal(size=(5, 4, 16)).astype(np.float32)
    p = softmax_rows(x)
    np.testing.assert_allclose(p.sum(axis=-1), 1.0, rtol=1e-5)


def test_softmax_stable_for_large_logits():
    p = softmax_rows(np.array([[1000.0, 1000.0, 0.0]]))
    assert np.all(np.isfinite(p))
    np.testing.assert_allclose(p[0], [0.5, 0.5, 0.0], atol=1e-6)


def test_sigmoid():
    np.testing.assert_allclose(sigmoid(np.array([0.0])), [0.5])
    assert sigmoid(np.array([50.0]))[0] == pytest.approx(1.0)


def test_iou_basic_properties():
    a = Detection(0.1, 0.1, 0.4, 0.3)
    b = Detection(0.2, 0.15, 0.4, 0.4)
    assert iou_xywh(a, a) == 1.0
    assert iou_xywh(a, b) == pytest.approx(iou_xywh(b, a))
    assert 0.0 < iou_xywh(a, b) < 1.0


def test_iou_disjoint_and_touching():
    a = Detection(0.0, 0.0, 0.2, 0.2)
    assert iou_xywh(a, Detection(0.5, 0.5, 0.2, 0.2)) == 0.0
    assert iou_xywh(a, Detection(0.2, 0.0, 0.2, 0.2)) == 0.0


def test_iou_degenerate_boxes():
    z = Detection(0.3, 0.3, 0.0, 0.0)
    assert iou_xywh(z, z) == 0.0


def test_nms_suppresses_at_or_above_threshold():
    decs = [_dec(0, 0, 1.0, 1.0), _dec(0, 0, 0.75, 1.0)]
    kept = nms(decs, 0.7)
    assert len(kept) == 1
    assert decs[1].detection.confidence == 0.0

    decs = [_dec(0, 0, 1.0, 1.0), _dec(0, 0, 0.5, 1.0)]
    assert len(nms(decs, 0.5)) == 1


def test_nms_keeps_below_threshold():
    decs = [_dec(0, 0, 1.0, 1.0), _dec(0, 0, 0.65, 1.0)]
    kept = nms(decs, 0.7)
    assert [d.detection.width for d in kept] == [1.0, 0.65]


def test_nms_tie_keeps_lower_index():
    first = _dec(0.1, 0.1, 0.3, 0.3, conf=0.8)
    second = _dec(0.1, 0.1, 0.3, 0.3, conf=0.8)
    kept = nms([first, second], 0.7)
    assert kept == [first]
    assert kept[0] is first


def test_nms_uses_decode_order_not_confidence():
    low = _dec(0.1, 0.1, 0.3, 0.3, conf=0.65)
    high = _dec(0.1, 0.1, 0.3, 0.3, conf=0.95)
    kept = nms([low, high], 0.7)
    assert kept[0] is low
    assert high.detection.confidence == 0.0


def test_nms_per_class_vs_cross_class():
    boxes = lambda: [_dec(0.1, 0.1, 0.3, 0.3, class_id=0), _dec(0.1, 0.1, 0.3, 0.3, class_id=1)]
    assert len(nms(boxes(), 0.7, cross_classes=False)) == 2
    assert len(nms(boxes(), 0.7, cross_classes=True)) == 1


def test_nms_idempotent_and_order_preserving():
    decs = [
        _dec(0.0, 0.0, 0.2, 0.2),
        _dec(0.5, 0.5, 0.2, 0.2),
        _dec(0.01, 0.0, 0.2, 0.2),
        _dec(0.7, 0.1, 0.1, 0.1),
    ]
    once = nms(decs, 0.7)
    twice = nms(list(once), 0.7)
    assert once == twice
    assert [d.detection.xmin for d in once] == [0.0, 0.5, 0.7]
    for i, a in enumerate(once):
        for b in once[i + 1:]:
            assert iou_xywh(a.detection, b.detection) < 0.7


def test_nms_empty():
    assert nms([], 0.7) == []


def test_compute_fit_scale_never_upscales():
    assert compute_fit_scale(640, 480, 1280, 720) == 1.0
    assert compute_fit_scale(2560, 1440, 1280, 720) == 0.5


def test_chunks():
    assert chunks([1, 2, 3, 4, 5, 6], 3) == [[1, 2, 3], [4, 5, 6]]
