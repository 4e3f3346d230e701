# -*- coding: utf-8 -*-
import json

import pytest

from yolopose.config import AppConfig, DecoderConfig, load_config
from yolopose.errors import DecoderConfigError
from yolopose.labels import COCO80, default_labels, resolve_label


def test_defaults():
    cfg = DecoderConfig().validate()
    assert (cfg.network_width, cfg.network_height) == (640, 640)
    assert tuple(cfg.strides) == (8, 16, 32)
    assert cfg.box_channels == 64
    assert cfg.keypoint_channels == 51
    assert cfg.score_threshold == 0.6
    assert cfg.iou_threshold == 0.7
    assert cfg.joint_threshold == 0.1
    assert cfg.cross_class_nms is True
    assert cfg.keypoint_scale == 4.0
    assert cfg.clamp_coordinates is False


@pytest.mark.parametrize("overrides", [
    dict(score_threshold=0.0),
    dict(score_threshold=1.5),
    dict(iou_threshold=-0.1),
    dict(joint_threshold=2.0),
    dict(strides=()),
    dict(strides=(8, 0)),
    dict(strides=(1024,)),
    dict(network_width=0),
    dict(regression_length=0),
    dict(num_classes=0),
    dict(keypoint_scale=0.0),
    dict(num_classes=3, labels=["a", "b"]),
])
def test_invalid_values(overrides):
    with pytest.raises(DecoderConfigError):
        DecoderConfig(**overrides).validate()


def test_validate_heads():
    cfg = DecoderConfig()
    cfg.validate_heads(3)
    with pytest.raises(DecoderConfigError):
        cfg.validate_heads(2)


def test_load_config_without_file(tmp_path):
    assert isinstance(load_config(None), AppConfig)
    cfg = load_config(tmp_path / "missing.json")
    assert cfg.decoder == DecoderConfig()


def test_load_config_json(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({
        "decoder": {"score_threshold": 0.5, "strides": [8, 16], "cross_class_nms": "false",
                    "labels": ["person"], "unknown_key": 1},
        "app": {"queue_policy": "drop_oldest", "queue_size": "4", "show": False},
    }), encoding="utf-8")
    cfg = load_config(p)
    assert cfg.decoder.score_threshold == 0.5
    assert cfg.decoder.strides == (8, 16)
    assert cfg.decoder.cross_class_nms is False
    assert cfg.decoder.labels == ["person"]
    assert cfg.queue_policy == "drop_oldest"
    assert cfg.queue_size == 4
    assert cfg.show is False


def test_load_config_rejects_bad_threshold(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"decoder": {"score_threshold": 1.5}}), encoding="utf-8")
    with pytest.raises(DecoderConfigError):
        load_config(p)


def test_labels():
    assert default_labels(1) == ("person",)
    assert default_labels(80) is COCO80
    assert default_labels(3) == ("0", "1", "2")
    assert resolve_label(0, None, 1) == "person"
    assert resolve_label(5, ["a"], 1) == "5"
    assert resolve_label(1, ["a", "b"], 2) == "b"


@pytest.mark.parametrize("decoder", [
    {"score_threshold": "abc"},
    {"strides": [8, "x"]},
    {"strides": 32},
    {"cross_class_nms": "maybe"},
    {"num_classes": [1]},
])
def test_load_config_rejects_uncoercible_values(tmp_path, decoder):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"decoder": decoder}), encoding="utf-8")
    with pytest.raises(DecoderConfigError) as exc:
        load_config(p)
    assert next(iter(decoder)) in str(exc.value)


def test_load_config_rejects_bad_app_value(tmp_path):
    p = tmp_path / "cfg.json"
    p.write_text(json.dumps({"app": {"queue_size": "eight"}}), encoding="utf-8")
    with pytest.raises(DecoderConfigError):
        load_config(p)
