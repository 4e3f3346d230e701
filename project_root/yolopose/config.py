# -*- coding: utf-8 -*-
import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .errors import DecoderConfigError


@dataclass
class DecoderConfig:
    """
    후처리 디코더 설정.

    튜닝 가이드

    중복 박스가 남는다 → iou_threshold↓ (더 공격적으로 억제).

    사람이 아닌 것까지 잡힌다 → score_threshold↑.

    관절이 너무 많이/적게 찍힌다 → joint_threshold 조절.

    관절이 한 점에 뭉쳐 보인다 → keypoint_scale 조절 (모델 export마다 다를 수 있음).
    """
    # 네트워크 입력/헤드
    network_width: int = 640
    network_height: int = 640
    strides: Tuple[int, ...] = (8, 16, 32)  # 헤드 순서(텐서 순서)와 동일해야 함
    regression_length: int = 15             # 박스 변 하나당 bin 수 - 1 (16 bin → 0..15)
    num_classes: int = 1
    num_keypoints: int = 17

    # 임계치
    score_threshold: float = 0.6   # 이 값 이상만 디코딩(같으면 유지)
    iou_threshold: float = 0.7     # IoU가 이 값 이상이면 뒤쪽 검출 억제
    joint_threshold: float = 0.1   # 관절: score > th, 관절쌍: 양 끝 모두 score >= th
    cross_class_nms: bool = True   # True면 클래스 무관하게 NMS (이 시스템의 기본 정책)

    # 키포인트
    keypoint_scale: float = 4.0       # 좁은 동적범위 보정 배수. 모델 export마다 재보정 필요할 수 있음
    keypoint_divisor: float = 255.0   # 키포인트 원시값 정규화 분모 (양자화 공식 적용 안 함)

    # 기타
    clamp_coordinates: bool = False   # True면 정규화 좌표를 [0,1]로 클립. 기본은 그대로 전달
    reorder_tensors: bool = False     # True면 텐서를 크기 기준으로 (boxes, scores, keypoints) 순서로 재배열
    labels: Optional[Sequence[str]] = None  # None이면 num_classes로부터 결정

    @property
    def box_channels(self) -> int:
        return 4 * (self.regression_length + 1)

    @property
    def keypoint_channels(self) -> int:
        return self.num_keypoints * 3

    def validate(self) -> "DecoderConfig":
        """설정 값의 범위를 검사한다. 문제가 있으면 DecoderConfigError."""
        if self.network_width <= 0 or self.network_height <= 0:
            raise DecoderConfigError(
                f"network dims must be positive, got {self.network_width}x{self.network_height}")
        if not self.strides:
            raise DecoderConfigError("strides must not be empty")
        for s in self.strides:
            if int(s) <= 0:
                raise DecoderConfigError(f"strides must be positive, got {tuple(self.strides)}")
            if self.network_width // int(s) == 0 or self.network_height // int(s) == 0:
                raise DecoderConfigError(
                    f"stride {s} is larger than network dims {self.network_width}x{self.network_height}")
        if self.regression_length <= 0:
            raise DecoderConfigError(f"regression_length must be positive, got {self.regression_length}")
        if self.num_classes <= 0:
            raise DecoderConfigError(f"num_classes must be positive, got {self.num_classes}")
        if self.num_keypoints <= 0:
            raise DecoderConfigError(f"num_keypoints must be positive, got {self.num_keypoints}")
        # score 0은 NMS 억제 표식과 구분이 안 되므로 허용하지 않는다.
        if not (0.0 < self.score_threshold <= 1.0):
            raise DecoderConfigError(f"score_threshold must be in (0, 1], got {self.score_threshold}")
        if not (0.0 <= self.iou_threshold <= 1.0):
            raise DecoderConfigError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")
        if not (0.0 <= self.joint_threshold <= 1.0):
            raise DecoderConfigError(f"joint_threshold must be in [0, 1], got {self.joint_threshold}")
        if self.keypoint_scale <= 0:
            raise DecoderConfigError(f"keypoint_scale must be positive, got {self.keypoint_scale}")
        if self.keypoint_divisor <= 0:
            raise DecoderConfigError(f"keypoint_divisor must be positive, got {self.keypoint_divisor}")
        if self.labels is not None and len(self.labels) < self.num_classes:
            raise DecoderConfigError(
                f"label table has {len(self.labels)} entries, num_classes={self.num_classes}")
        return self

    def validate_heads(self, n_heads: int):
        """헤드 수와 stride 목록 길이가 다르면 디코딩 전에 실패한다."""
        if len(self.strides) != n_heads:
            raise DecoderConfigError(
                f"stride list has {len(self.strides)} entries but tensors describe {n_heads} heads")


@dataclass
class AppConfig:
    """CLI/뷰어용 입출력 설정. 디코더 파라미터는 decoder에 모아둔다."""
    decoder: DecoderConfig = field(default_factory=DecoderConfig)

    record_dir: str = "recordings"       # 프레임별 .npz 텐서 녹화 폴더
    source: Optional[str] = None         # 배경 영상(파일/웹캠 인덱스/URL). None이면 녹화 안의 frame 사용
    output_path: Optional[str] = "processed_video.mp4"
    output_fps: float = 30.0
    num_frames: Optional[int] = None     # None이면 녹화 끝까지

    # 프레임 큐(생산자 → 디코더)
    queue_size: int = 8
    queue_policy: str = "block"          # "block" 또는 "drop_oldest"

    # 디스플레이
    show: bool = True
    display_max_w: int = 1280
    display_max_h: int = 720
    win_name: str = "YOLOv8 Pose"


def _as_type(key: str, value: Any, default: Any) -> Any:
    """기본값의 타입에 맞춰 JSON 값을 변환한다. 변환 실패 시 DecoderConfigError."""
    if value is None:
        return default
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                s = value.strip().lower()
                if s in ("1", "true", "yes", "on"):
                    return True
                if s in ("0", "false", "no", "off"):
                    return False
                raise ValueError(value)
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, tuple):
            return tuple(int(v) for v in value)
        if isinstance(default, str):
            return str(value)
    except (TypeError, ValueError):
        raise DecoderConfigError(f"config key {key!r}: invalid value {value!r}") from None
    return value


def _fill(cls, raw: Dict[str, Any]):
    defaults = cls()
    kwargs = {}
    for f in fields(cls):
        if f.name == "decoder" or f.name not in raw:
            continue
        kwargs[f.name] = _as_type(f.name, raw[f.name], getattr(defaults, f.name))
    return cls(**kwargs)


def load_config(path: Optional[Union[str, Path]] = None) -> AppConfig:
    """
    JSON 설정 파일을 읽어 AppConfig를 만든다.

    형식: {"decoder": {...DecoderConfig 필드...}, "app": {...AppConfig 필드...}}
      - 파일이 없으면 기본값
      - 모르는 키는 무시, 아는 키의 값이 타입에 안 맞으면 DecoderConfigError
      - decoder 값은 validate()까지 수행 (잘못되면 DecoderConfigError)
    """
    if path is None:
        return AppConfig()
    p = Path(path).expanduser()
    if not p.exists():
        return AppConfig()
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise DecoderConfigError(f"config root must be an object: {p}")

    dec_raw = raw.get("decoder") or {}
    app_raw = raw.get("app") or {}
    decoder = _fill(DecoderConfig, dec_raw)
    if "labels" in dec_raw and dec_raw["labels"] is not None:
        decoder.labels = [str(x) for x in dec_raw["labels"]]
    decoder.validate()

    app = _fill(AppConfig, app_raw)
    app.decoder = decoder
    return app
