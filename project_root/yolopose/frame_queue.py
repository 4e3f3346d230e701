# -*- coding: utf-8 -*-
import logging
import queue
import threading
from typing import Any, Optional

logger = logging.getLogger(__name__)

BLOCK = "block"
DROP_OLDEST = "drop_oldest"


class QueueClosed(Exception):
    """close() 이후 비어 있는 큐에서 get() 하면 발생."""


class FrameQueue:
    """
    생산자(텐서 읽기 스레드) → 소비자(디코더) 사이의 유한 크기 프레임 큐.

    가득 찼을 때 정책
      - "block"       : 생산자가 자리가 날 때까지 대기 (프레임 손실 없음)
      - "drop_oldest" : 가장 오래된 프레임을 버리고 새 프레임을 넣음 (실시간 우선), dropped 증가

    close() 이후 put()은 무시되고, 남은 프레임을 다 꺼내면 get()이 QueueClosed를 던진다.
    """
    def __init__(self, maxsize: int = 8, policy: str = BLOCK):
        if maxsize <= 0:
            raise ValueError(f"maxsize must be positive, got {maxsize}")
        if policy not in (BLOCK, DROP_OLDEST):
            raise ValueError(f"unknown queue policy {policy!r} (use {BLOCK!r} or {DROP_OLDEST!r})")
        self.policy = policy
        self.dropped = 0
        self._q: "queue.Queue[Any]" = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, item: Any, timeout: Optional[float] = None) -> bool:
        """프레임 1개를 넣는다. 넣었으면 True (닫힌 큐/타임아웃이면 False)."""
        if self.closed:
            return False
        if self.policy == BLOCK:
            while not self.closed:
                try:
                    self._q.put(item, timeout=0.1 if timeout is None else timeout)
                    return True
                except queue.Full:
                    if timeout is not None:
                        return False
            return False

        with self._lock:
            while True:
                try:
                    self._q.put_nowait(item)
                    return True
                except queue.Full:
                    try:
                        self._q.get_nowait()
                        self.dropped += 1
                        logger.warning("frame queue full, dropped oldest frame (total dropped=%d)", self.dropped)
                    except queue.Empty:
                        pass

    def get(self, timeout: Optional[float] = None) -> Any:
        """
        프레임 1개를 꺼낸다.
        - timeout 안에 못 꺼내면 queue.Empty
        - 닫혔고 비었으면 QueueClosed
        """
        waited = 0.0
        while True:
            try:
                return self._q.get(timeout=0.05)
            except queue.Empty:
                if self.closed:
                    raise QueueClosed()
                waited += 0.05
                if timeout is not None and waited >= timeout:
                    raise

    def close(self):
        self._closed.set()

    def qsize(self) -> int:
        return self._q.qsize()

    def __iter__(self):
        while True:
            try:
                yield self.get()
            except QueueClosed:
                return
