# -*- coding: utf-8 -*-


class PoseDecodeError(ValueError):
    """입력 텐서가 잘못된 경우(개수/형상/버퍼 길이 불일치). 부분 결과 없이 즉시 실패."""


class DecoderConfigError(ValueError):
    """디코더 설정 오류(stride 개수 불일치, 범위 밖 임계치 등). 디코딩 시작 전에 발생."""
