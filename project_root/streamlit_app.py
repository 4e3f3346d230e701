# -*- coding: utf-8 -*-
from pathlib import Path

import numpy as np
import streamlit as st

from yolopose.config import DecoderConfig
from yolopose.errors import DecoderConfigError, PoseDecodeError
from yolopose.postprocess import PosePostprocessor
from yolopose.renderer import Renderer
from yolopose.streams import load_tensor_frame

st.set_page_config(page_title="YOLOv8 Pose Postprocess (Streamlit)", layout="wide")

# ============ 세션 상태 ============
if "dec" not in st.session_state: st.session_state.dec = DecoderConfig()
if "record_dir" not in st.session_state: st.session_state.record_dir = "recordings"

dec: DecoderConfig = st.session_state.dec

# ============ 사이드바 ============
st.sidebar.header("Input")
st.session_state.record_dir = st.sidebar.text_input("record_dir (.npz 폴더)", st.session_state.record_dir)

st.sidebar.header("Network")
dec.network_width  = int(st.sidebar.number_input("network_width", 32, 2048, int(dec.network_width), step=32))
dec.network_height = int(st.sidebar.number_input("network_height", 32, 2048, int(dec.network_height), step=32))
strides_txt = st.sidebar.text_input("strides", ",".join(str(s) for s in dec.strides))
dec.regression_length = int(st.sidebar.number_input("regression_length", 1, 64, int(dec.regression_length)))

st.sidebar.header("Thresholds")
dec.score_threshold = float(st.sidebar.slider("score_threshold", 0.01, 1.0, float(dec.score_threshold), 0.01))
dec.iou_threshold   = float(st.sidebar.slider("iou_threshold", 0.0, 1.0, float(dec.iou_threshold), 0.01))
dec.joint_threshold = float(st.sidebar.slider("joint_threshold", 0.0, 1.0, float(dec.joint_threshold), 0.01))
dec.cross_class_nms = st.sidebar.checkbox("cross-class NMS", dec.cross_class_nms)

st.sidebar.header("Keypoints")
dec.keypoint_scale    = float(st.sidebar.slider("keypoint_scale", 0.5, 8.0, float(dec.keypoint_scale), 0.1))
dec.clamp_coordinates = st.sidebar.checkbox("clamp to [0,1]", dec.clamp_coordinates)
dec.reorder_tensors   = st.sidebar.checkbox("reorder tensors by size", dec.reorder_tensors)

# ============ 본문 ============
st.title("YOLOv8 Pose: tensor → detections")

files = sorted(Path(st.session_state.record_dir).glob("*.npz"))
if not files:
    st.info("녹화 폴더에 .npz 파일이 없습니다. 사이드바에서 경로를 확인하세요.")
    st.stop()

idx = st.slider("frame", 0, len(files) - 1, 0)

try:
    dec.strides = tuple(int(s) for s in strides_txt.replace(" ", "").split(",") if s)
    post = PosePostprocessor(dec)
    tf = load_tensor_frame(files[idx], index=idx)
    result = post.process(tf.tensors)
except (DecoderConfigError, PoseDecodeError, ValueError) as e:
    st.error(str(e))
    st.stop()

image = tf.image if tf.image is not None else np.zeros((dec.network_height, dec.network_width, 3), np.uint8)
out = Renderer().draw(image, result)

info_col, view_col = st.columns([1, 2], gap="large")
with info_col:
    st.write(f"file: `{files[idx].name}`")
    st.write(f"tensors: {len(tf.tensors)}  detections: {len(result)}")
    st.write(f"keypoints: {len(result.keypoints)}  segments: {len(result.joint_pairs)}")
    st.dataframe([
        {
            "label": d.label,
            "conf": round(d.confidence, 4),
            "xmin": round(d.xmin, 4), "ymin": round(d.ymin, 4),
            "w": round(d.width, 4), "h": round(d.height, 4),
        }
        for d in result.detections
    ])
with view_col:
    st.image(out, channels="BGR", caption=f"frame {idx}")
