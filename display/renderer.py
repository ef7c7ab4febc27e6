"""界面渲染模块 - 在视频帧上绘制关键点、指标数值和警觉状态。"""

from typing import Optional, Sequence

import cv2
import numpy as np

from classifiers.frame_classifier import LEFT_EYE_SLICE, NOSE_TIP_INDEX, NUM_LANDMARKS, RIGHT_EYE_SLICE
from models.data_models import ClassificationResult

# BGR 颜色
_YELLOW = (0, 255, 255)
_RED = (0, 0, 255)
_GREEN = (0, 255, 0)
_CYAN = (255, 255, 0)


def format_value(v: float) -> str:
    """格式化浮点数为两位小数字符串。"""
    return f"{v:.2f}"


class DisplayRenderer:
    """在视频帧上绘制分类结果：眼部/鼻尖关键点、EAR/视线/转头数值以及疲劳分心提示。"""

    def render(
        self,
        frame: np.ndarray,
        landmarks: Optional[Sequence],
        result: ClassificationResult,
    ) -> np.ndarray:
        """渲染检测结果到视频帧副本，返回渲染后的帧图像。"""
        output = frame.copy()

        if not result.face_detected:
            self._draw_no_face(output)
            return output

        if landmarks is not None and len(landmarks) >= NUM_LANDMARKS:
            self._draw_landmarks(output, landmarks)

        self._draw_metrics(output, result)
        self._draw_states(output, result)

        return output

    @staticmethod
    def _draw_landmarks(frame: np.ndarray, landmarks: Sequence) -> None:
        """绘制双眼关键点（黄色）和鼻尖（红色）。"""
        eye_points = list(landmarks[LEFT_EYE_SLICE]) + list(landmarks[RIGHT_EYE_SLICE])
        for p in eye_points:
            cv2.circle(frame, (int(p[0]), int(p[1])), 2, _YELLOW, -1)

        nose = landmarks[NOSE_TIP_INDEX]
        cv2.circle(frame, (int(nose[0]), int(nose[1])), 3, _RED, -1)

    @staticmethod
    def _draw_metrics(frame: np.ndarray, result: ClassificationResult) -> None:
        """在左上角绘制 EAR、视线偏移和头部转动数值。"""
        metrics = result.metrics
        lines = [
            (f"EAR: {format_value(metrics.ear)}", _GREEN),
            (f"Gaze offset: {format_value(metrics.gaze_offset)}", _CYAN),
            (f"Head rot: {format_value(metrics.rotation)}", _YELLOW),
        ]
        y = 30
        for text, color in lines:
            cv2.putText(frame, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2)
            y += 30

    @staticmethod
    def _draw_states(frame: np.ndarray, result: ClassificationResult) -> None:
        """疲劳/分心时绘制红色提示。"""
        state = result.alert_state
        if state.drowsy:
            cv2.putText(frame, "DROWSY", (10, 130), cv2.FONT_HERSHEY_SIMPLEX, 1.0, _RED, 3)
        if state.distracted:
            cv2.putText(frame, "DISTRACTED", (10, 170), cv2.FONT_HERSHEY_SIMPLEX, 1.0, _RED, 3)

    @staticmethod
    def _draw_no_face(frame: np.ndarray) -> None:
        cv2.putText(frame, "No face", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, _CYAN, 2)
