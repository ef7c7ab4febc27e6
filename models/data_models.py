"""核心数据模型定义"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional


class Point2D(NamedTuple):
    """像素坐标系下的二维关键点"""
    x: float
    y: float


@dataclass
class MetricSample:
    """单帧几何指标"""
    ear: float
    gaze_offset: float
    rotation: float


@dataclass
class AlertThresholds:
    """警报判定阈值（启动时固定）"""
    ear_threshold: float = 0.25
    ear_consec_frames: int = 15
    gaze_offset_threshold: float = 0.25
    gaze_consec_frames: int = 10
    rotation_threshold: float = 0.1
    rotation_consec_frames: int = 30


@dataclass
class AlertState:
    """综合警觉状态"""
    drowsy: bool
    distracted: bool
    alarm_active: bool
    reasons: List[str] = field(default_factory=list)
    ear_frame_count: int = 0
    gaze_frame_count: int = 0
    rotation_frame_count: int = 0


@dataclass
class AlertUpdate:
    """状态机单步输出：当前状态 + 警报边沿事件"""
    state: AlertState
    alarm_start: bool
    alarm_stop: bool


@dataclass
class ClassificationResult:
    """单帧分类结果，供渲染与警报模块消费"""
    face_detected: bool
    metrics: Optional[MetricSample]
    alert_state: AlertState
    alarm_start: bool
    alarm_stop: bool


@dataclass
class CalibrationResult:
    """阈值校准结果"""
    optimal_ear_threshold: float
    optimal_gaze_threshold: float
    optimal_rotation_threshold: float
    ear_accuracy: float
    ear_recall: float
    gaze_accuracy: float
    gaze_recall: float
    rotation_accuracy: float
    rotation_recall: float
    distributions: dict
