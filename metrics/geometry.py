"""几何指标模块：根据眼部与鼻尖关键点计算 EAR、视线偏移和头部转动指标"""

import math
from typing import Sequence, Tuple

from models.data_models import MetricSample

# 分母小于该值视为退化几何，指标直接返回 0
_EPSILON = 1e-6

PointLike = Tuple[float, float]


def eye_aspect_ratio(eye: Sequence[PointLike]) -> float:
    """
    计算单只眼睛的 EAR 值。

    公式: EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|)

    Args:
        eye: 6 个眼睛轮廓关键点 [(x, y), ...]，0/3 为眼角，1/2 为上眼睑，5/4 为下眼睑

    Returns:
        EAR 值；点数不为 6 或眼宽退化时返回 0.0
    """
    if len(eye) != 6:
        return 0.0

    p1, p2, p3, p4, p5, p6 = eye

    vertical_1 = math.dist(p2, p6)
    vertical_2 = math.dist(p3, p5)
    horizontal = math.dist(p1, p4)

    if horizontal <= _EPSILON:
        return 0.0

    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def mean_eye_aspect_ratio(left: Sequence[PointLike], right: Sequence[PointLike]) -> float:
    """双眼 EAR 的算术平均，值越低眼睛越闭合"""
    return (eye_aspect_ratio(left) + eye_aspect_ratio(right)) / 2.0


def _centroid(points: Sequence[PointLike]) -> Tuple[float, float]:
    n = len(points)
    return (
        sum(p[0] for p in points) / n,
        sum(p[1] for p in points) / n,
    )


def gaze_horizontal_offset(
    left: Sequence[PointLike],
    right: Sequence[PointLike],
    frame_width: int,
) -> float:
    """
    计算双眼中点相对画面中心的归一化水平偏移。

    Args:
        left: 左眼关键点
        right: 右眼关键点
        frame_width: 画面宽度（像素）

    Returns:
        (双眼中点 x - 画面宽度/2) / 画面宽度，正值表示偏右；
        任一眼为空或画面宽度 <= 0 时返回 0.0
    """
    if not left or not right or frame_width <= 0:
        return 0.0

    left_x, _ = _centroid(left)
    right_x, _ = _centroid(right)
    mid_x = (left_x + right_x) / 2.0

    return (mid_x - frame_width / 2.0) / frame_width


def head_rotation_metric(
    left: Sequence[PointLike],
    right: Sequence[PointLike],
    nose: PointLike,
) -> float:
    """
    鼻尖相对两外眼角中点的水平偏移，按眼角间距归一化，近似头部偏航。

    使用左眼索引 0 和右眼索引 3 的外眼角。正值表示鼻尖在中点右侧。
    任一眼为空或眼角间距 <= 1e-6 时返回 0.0。
    """
    if len(left) < 1 or len(right) < 4:
        return 0.0

    left_corner = left[0]
    right_corner = right[3]

    inter_eye = math.dist(left_corner, right_corner)
    if inter_eye <= _EPSILON:
        return 0.0

    mid_x = (left_corner[0] + right_corner[0]) / 2.0
    return (nose[0] - mid_x) / inter_eye


def compute_metrics(
    left: Sequence[PointLike],
    right: Sequence[PointLike],
    nose: PointLike,
    frame_width: int,
) -> MetricSample:
    """计算单帧全部几何指标"""
    return MetricSample(
        ear=mean_eye_aspect_ratio(left, right),
        gaze_offset=gaze_horizontal_offset(left, right, frame_width),
        rotation=head_rotation_metric(left, right, nose),
    )
