# -*- coding: utf-8 -*-
import shutil
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union
from urllib.parse import urlparse

import cv2
import numpy as np

from .errors import PoseDecodeError
from .frame_queue import FrameQueue
from .types import RawTensor


@dataclass
class TensorFrame:
    """녹화된 프레임 1개: 출력 텐서들 + (있으면) 원본 BGR 이미지."""
    index: int
    tensors: List[RawTensor]
    image: Optional[np.ndarray] = None
    path: Optional[Path] = None


def save_tensor_frame(path: Union[str, Path], tensors: Sequence[RawTensor],
                      image: Optional[np.ndarray] = None) -> Path:
    """
    텐서 묶음을 .npz 한 파일로 저장한다.

    키
      - tensor_<i>        : (H,W,C) uint8 또는 float32
      - qp_scale, qp_zp   : 길이 N 배열
      - names             : 길이 N 문자열 배열
      - frame (선택)      : 원본 BGR uint8 이미지
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    arrays = {f"tensor_{i}": t.data for i, t in enumerate(tensors)}
    arrays["qp_scale"] = np.array([t.scale for t in tensors], dtype=np.float32)
    arrays["qp_zp"] = np.array([t.zero_point for t in tensors], dtype=np.float32)
    arrays["names"] = np.array([t.name for t in tensors], dtype=str)
    if image is not None:
        arrays["frame"] = np.asarray(image, dtype=np.uint8)
    np.savez(p, **arrays)
    return p


def load_tensor_frame(path: Union[str, Path], index: int = 0) -> TensorFrame:
    """save_tensor_frame 형식의 .npz 를 읽는다. 형식이 깨졌으면 PoseDecodeError."""
    p = Path(path)
    with np.load(p, allow_pickle=False) as z:
        keys = [k for k in z.files if k.startswith("tensor_")]
        n = len(keys)
        scales = z["qp_scale"] if "qp_scale" in z.files else np.ones(n, dtype=np.float32)
        zps = z["qp_zp"] if "qp_zp" in z.files else np.zeros(n, dtype=np.float32)
        names = z["names"] if "names" in z.files else np.array([""] * n)
        if len(scales) != n or len(zps) != n:
            raise PoseDecodeError(
                f"{p}: {n} tensors but {len(scales)} scales / {len(zps)} zero-points")
        tensors = []
        for i in range(n):
            key = f"tensor_{i}"
            if key not in z.files:
                raise PoseDecodeError(f"{p}: missing {key}")
            tensors.append(RawTensor(z[key], scale=float(scales[i]), zero_point=float(zps[i]),
                                     name=str(names[i])))
        image = z["frame"] if "frame" in z.files else None
    return TensorFrame(index=index, tensors=tensors, image=image, path=p)


class TensorReplaySource:
    """녹화 폴더의 .npz 파일들을 이름순으로 재생한다(하드웨어 런타임 대신 쓰는 입력원)."""
    def __init__(self, directory: Union[str, Path], limit: Optional[int] = None):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise FileNotFoundError(f"recording directory not found: {self.directory}")
        self.files = sorted(self.directory.glob("*.npz"))
        if limit is not None:
            self.files = self.files[:limit]

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[TensorFrame]:
        for i, f in enumerate(self.files):
            yield load_tensor_frame(f, index=i)


class ProducerThread(threading.Thread):
    """
    입력원에서 프레임을 읽어 FrameQueue에 넣는 생산자 스레드.
    입력이 끝나거나 stop()되면 큐를 닫는다. 읽기 중 예외는 error에 보관 후 큐를 닫는다.
    """
    def __init__(self, source, frames: FrameQueue):
        super().__init__(name="tensor-producer", daemon=True)
        self.source = source
        self.frames = frames
        self.error: Optional[BaseException] = None
        self._stop_evt = threading.Event()

    def run(self):
        try:
            for item in self.source:
                if self._stop_evt.is_set():
                    break
                self.frames.put(item)
        except Exception as e:
            self.error = e
        finally:
            self.frames.close()

    def stop(self):
        self._stop_evt.set()
        self.frames.close()


class StreamResolver:
    """YouTube 등 → 실제 스트림 URL (streamlink 실행파일 사용)."""
    @staticmethod
    def resolve(url: str) -> str:
        exe = shutil.which("streamlink")
        if not exe:
            raise RuntimeError("streamlink 실행파일을 찾지 못했습니다.")
        out = subprocess.run([exe, "--stream-url", url, "best"], capture_output=True, text=True, check=True)
        s = out.stdout.strip()
        if not s:
            raise RuntimeError("streamlink로 스트림 URL 얻기 실패")
        return s


def open_capture(src: str) -> cv2.VideoCapture:
    """
    배경 영상 소스를 여는 헬퍼:
    - 로컬 파일 경로  → cv2.VideoCapture(파일)
    - 숫자 문자열     → cv2.VideoCapture(웹캠 인덱스)
    - http/https URL → streamlink 로 시도 후 실패시 직접 URL 시도
    """
    p = Path(src)
    if p.exists():
        return cv2.VideoCapture(str(p))

    if src.isdigit():
        return cv2.VideoCapture(int(src))

    u = urlparse(src)
    if u.scheme in ("http", "https"):
        try:
            cap = cv2.VideoCapture(StreamResolver.resolve(src))
            if cap.isOpened():
                return cap
        except (RuntimeError, subprocess.CalledProcessError):
            pass
        return cv2.VideoCapture(src)

    return cv2.VideoCapture(src)
