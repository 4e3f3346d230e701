# yolopose/__init__.py
# -*- coding: utf-8 -*-
"""
yolopose: YOLOv8-pose 출력 텐서 후처리 (역양자화 → 박스/키포인트 디코딩 → NMS → 관절 필터)
"""
from .config import AppConfig, DecoderConfig, load_config
from .errors import DecoderConfigError, PoseDecodeError
from .postprocess import PosePostprocessor
from .types import Detection, FrameResult, JointPair, KeyPt, KeypointSet, RawTensor, TensorEncoding

__all__ = [
    "AppConfig", "DecoderConfig", "load_config",
    "DecoderConfigError", "PoseDecodeError",
    "PosePostprocessor",
    "Detection", "FrameResult", "JointPair", "KeyPt", "KeypointSet", "RawTensor", "TensorEncoding",
]
