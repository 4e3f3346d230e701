# -*- coding: utf-8 -*-
import logging
from typing import List, Optional, Sequence

from .anchors import AnchorCache
from .config import DecoderConfig
from .decoder import decode_boxes_and_keypoints, gather_scores, group_heads, order_tensors, validate_head
from .keypoints import filter_keypoints
from .types import Decoding, FrameResult, RawTensor
from .utils import nms

logger = logging.getLogger(__name__)


class PosePostprocessor:
    """YOLOv8-pose 출력 텐서 후처리 파이프라인(역양자화 → 점수 필터 → 디코딩 → NMS → 관절 필터).
    - 프레임 간 상태 없음. 앵커 중심 격자만 캐시해서 재사용한다.
    - 같은 입력이면 항상 같은 결과(멱등).
    """
    def __init__(self, cfg: Optional[DecoderConfig] = None, anchors: Optional[AnchorCache] = None):
        self.cfg = (cfg or DecoderConfig()).validate()
        self.anchors = anchors or AnchorCache()

    def decode(self, tensors: Sequence[RawTensor]) -> List[Decoding]:
        """
        출력 텐서 → NMS까지 마친 Decoding 목록.

        처리 순서
        1) (선택) 크기 기준 재정렬 → (boxes, scores, keypoints) × 헤드
        2) 헤드 수 vs stride 개수 확인, 헤드별 형상 검사 (디코딩 전에 실패)
        3) 점수 텐서 역양자화 후 이어 붙이기
        4) 점수 임계치 통과 앵커만 박스/키포인트 복원
        5) NMS (기본: 클래스 무관)

        텐서가 하나도 없으면 빈 목록(오류 아님).
        """
        cfg = self.cfg
        if len(tensors) == 0:
            return []
        if cfg.reorder_tensors:
            tensors = order_tensors(tensors, cfg)
        heads = group_heads(tensors)
        cfg.validate_heads(len(heads))
        for i, head in enumerate(heads):
            validate_head(head, cfg.strides[i], cfg, index=i)

        scores = gather_scores(heads, cfg.num_classes)
        centers = self.anchors.get(cfg.strides, cfg.network_width, cfg.network_height)
        decodings = decode_boxes_and_keypoints(heads, scores, cfg, centers)
        kept = nms(decodings, cfg.iou_threshold, cross_classes=cfg.cross_class_nms)
        logger.debug("decoded %d candidates, %d left after NMS", len(decodings), len(kept))
        return kept

    def process(self, tensors: Sequence[RawTensor]) -> FrameResult:
        """한 프레임 전체 후처리. 최종 검출 목록 + 검출별 관절/선분."""
        kept = self.decode(tensors)
        return FrameResult(
            detections=[d.detection for d in kept],
            keypoint_sets=filter_keypoints(kept, self.cfg.joint_threshold),
        )

    __call__ = process
