"""警觉状态机：汇总三个去抖计数器，输出疲劳/分心状态和警报边沿事件"""

from typing import List, Optional

from evaluators.hysteresis import HysteresisCounter
from models.data_models import AlertState, AlertThresholds, AlertUpdate, MetricSample

REASON_EYES_CLOSED = "闭眼"
REASON_GAZE_AWAY = "视线偏离"
REASON_HEAD_TURNED = "转头"


class AlertStateMachine:
    """
    维护闭眼、视线偏离、转头三个计数器以及上一帧的警报状态。

    每帧调用一次 update()；未检测到人脸的帧调用 update_no_face()，
    三个条件均按不成立处理，所有连续计数清零。
    """

    def __init__(self, thresholds: Optional[AlertThresholds] = None, detect_distraction: bool = True):
        self.thresholds = thresholds if thresholds is not None else AlertThresholds()
        self.detect_distraction = detect_distraction

        self.ear_counter = HysteresisCounter(self.thresholds.ear_consec_frames)
        self.gaze_counter = HysteresisCounter(self.thresholds.gaze_consec_frames)
        self.rotation_counter = HysteresisCounter(self.thresholds.rotation_consec_frames)

        self.previous_alert = False

    def update(self, sample: MetricSample) -> AlertUpdate:
        """
        根据单帧指标推进状态机。

        Args:
            sample: 当前帧的 MetricSample

        Returns:
            AlertUpdate(state, alarm_start, alarm_stop)
        """
        t = self.thresholds

        ear_low = self.ear_counter.update(sample.ear < t.ear_threshold)

        gaze_far = False
        rotate_far = False
        if self.detect_distraction:
            gaze_far = self.gaze_counter.update(abs(sample.gaze_offset) > t.gaze_offset_threshold)
            rotate_far = self.rotation_counter.update(abs(sample.rotation) > t.rotation_threshold)

        return self._transition(ear_low, gaze_far, rotate_far)

    def update_no_face(self) -> AlertUpdate:
        """未检测到人脸：所有条件视为不成立"""
        ear_low = self.ear_counter.update(False)
        gaze_far = self.gaze_counter.update(False)
        rotate_far = self.rotation_counter.update(False)
        return self._transition(ear_low, gaze_far, rotate_far)

    def _transition(self, ear_low: bool, gaze_far: bool, rotate_far: bool) -> AlertUpdate:
        drowsy = ear_low
        distracted = gaze_far or rotate_far
        alert = drowsy or distracted

        alarm_start = alert and not self.previous_alert
        alarm_stop = not alert and self.previous_alert
        self.previous_alert = alert

        reasons: List[str] = []
        if ear_low:
            reasons.append(REASON_EYES_CLOSED)
        if gaze_far:
            reasons.append(REASON_GAZE_AWAY)
        if rotate_far:
            reasons.append(REASON_HEAD_TURNED)

        state = AlertState(
            drowsy=drowsy,
            distracted=distracted,
            alarm_active=alert,
            reasons=reasons,
            ear_frame_count=self.ear_counter.count,
            gaze_frame_count=self.gaze_counter.count,
            rotation_frame_count=self.rotation_counter.count,
        )
        return AlertUpdate(state=state, alarm_start=alarm_start, alarm_stop=alarm_stop)

    def reset(self):
        """清空所有计数器和上一帧警报状态，不产生边沿事件"""
        self.ear_counter.reset()
        self.gaze_counter.reset()
        self.rotation_counter.reset()
        self.previous_alert = False
