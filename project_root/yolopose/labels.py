# -*- coding: utf-8 -*-
from typing import Optional, Sequence, Tuple

COCO80: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat",
    "traffic light", "fire hydrant", "stop sign", "parking meter", "bench", "bird", "cat", "dog",
    "horse", "sheep", "cow", "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella",
    "handbag", "tie", "suitcase", "frisbee", "skis", "snowboard", "sports ball", "kite",
    "baseball bat", "baseball glove", "skateboard", "surfboard", "tennis racket", "bottle",
    "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple", "sandwich", "orange",
    "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch", "potted plant",
    "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote", "keyboard", "cell phone",
    "microwave", "oven", "toaster", "sink", "refrigerator", "book", "clock", "vase", "scissors",
    "teddy bear", "hair drier", "toothbrush",
)

SINGLE_CLASS: Tuple[str, ...] = ("person",)


def default_labels(num_classes: int) -> Tuple[str, ...]:
    """클래스 수에 맞는 기본 라벨 테이블. 1 → person 단일, 80 → COCO, 그 외 → 번호 문자열."""
    if num_classes == 1:
        return SINGLE_CLASS
    if num_classes == len(COCO80):
        return COCO80
    return tuple(str(i) for i in range(num_classes))


def resolve_label(class_id: int, labels: Optional[Sequence[str]], num_classes: int) -> str:
    table = labels if labels is not None else default_labels(num_classes)
    if 0 <= class_id < len(table):
        return table[class_id]
    return str(class_id)
