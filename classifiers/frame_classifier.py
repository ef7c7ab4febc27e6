"""逐帧分类模块：关键点 → 几何指标 → 状态机 → 分类结果"""

import math
from typing import Optional, Sequence

from evaluators.alert_state_machine import AlertStateMachine
from metrics.geometry import compute_metrics
from models.data_models import AlertThresholds, ClassificationResult, MetricSample, Point2D

# 68 点 (iBUG 300-W) 布局中的索引
NUM_LANDMARKS = 68
LEFT_EYE_SLICE = slice(36, 42)
RIGHT_EYE_SLICE = slice(42, 48)
NOSE_TIP_INDEX = 30

MODES = ("full", "drowsy")


def _to_points(landmarks: Sequence) -> Optional[list]:
    """转换为 Point2D 列表；坐标缺失或非有限值时返回 None"""
    points = []
    for p in landmarks:
        try:
            x, y = float(p[0]), float(p[1])
        except (TypeError, ValueError, IndexError):
            return None
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        points.append(Point2D(x, y))
    return points


def extract_metrics(landmarks: Optional[Sequence], frame_width: int) -> Optional[MetricSample]:
    """
    从 68 点关键点中切出双眼和鼻尖并计算指标。

    Args:
        landmarks: 68 点关键点序列 [(x, y), ...]，可为 None
        frame_width: 画面宽度（像素）

    Returns:
        MetricSample；关键点缺失、不足 68 个或数据异常时返回 None
    """
    if landmarks is None:
        return None
    try:
        if len(landmarks) < NUM_LANDMARKS:
            return None
    except TypeError:
        return None

    points = _to_points(landmarks)
    if points is None:
        return None

    left_eye = points[LEFT_EYE_SLICE]
    right_eye = points[RIGHT_EYE_SLICE]
    nose_tip = points[NOSE_TIP_INDEX]

    return compute_metrics(left_eye, right_eye, nose_tip, frame_width)


class FrameClassifier:
    """持有唯一的 AlertStateMachine，对每帧关键点输出分类结果。"""

    def __init__(self, thresholds: Optional[AlertThresholds] = None, mode: str = "full"):
        """
        Args:
            thresholds: 警报阈值，缺省使用 AlertThresholds 默认值
            mode: "full" 检测疲劳与分心，"drowsy" 仅检测疲劳
        """
        if mode not in MODES:
            raise ValueError(f"不支持的检测模式: {mode}")
        self.mode = mode
        self.state_machine = AlertStateMachine(
            thresholds, detect_distraction=(mode == "full"),
        )

    def classify(self, face_landmarks: Optional[Sequence], frame_width: int) -> ClassificationResult:
        """分类单帧；无有效关键点时按未检测到人脸处理"""
        sample = extract_metrics(face_landmarks, frame_width)

        if sample is None:
            update = self.state_machine.update_no_face()
        else:
            update = self.state_machine.update(sample)

        return ClassificationResult(
            face_detected=sample is not None,
            metrics=sample,
            alert_state=update.state,
            alarm_start=update.alarm_start,
            alarm_stop=update.alarm_stop,
        )

    def reset(self):
        self.state_machine.reset()
