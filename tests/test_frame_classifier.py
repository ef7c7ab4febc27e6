"""FrameClassifier 单元测试"""

import math

import numpy as np
import pytest

from classifiers.frame_classifier import FrameClassifier, extract_metrics
from models.data_models import AlertThresholds, ClassificationResult, MetricSample

WIDTH = 640


class TestExtractMetrics:
    def test_metrics_from_landmarks(self, make_face):
        sample = extract_metrics(make_face(eye_height=12.0, shift_x=64.0, rotation=0.2), WIDTH)
        assert isinstance(sample, MetricSample)
        assert sample.ear == pytest.approx(0.3)
        assert sample.gaze_offset == pytest.approx(0.1)
        assert sample.rotation == pytest.approx(0.2)

    def test_none_returns_none(self):
        assert extract_metrics(None, WIDTH) is None

    def test_short_landmarks_return_none(self, make_face):
        assert extract_metrics(make_face()[:67], WIDTH) is None

    def test_extra_landmarks_are_ignored(self, make_face):
        pts = make_face() + [(0.0, 0.0)] * 10
        assert extract_metrics(pts, WIDTH) == extract_metrics(make_face(), WIDTH)

    def test_numpy_landmarks(self, make_face):
        arr = np.array(make_face(), dtype=np.float32)
        sample = extract_metrics(arr, WIDTH)
        assert sample.ear == pytest.approx(0.3, rel=1e-4)

    @pytest.mark.parametrize("bad", [(math.nan, 1.0), (1.0,), "xy", None])
    def test_malformed_point_returns_none(self, make_face, bad):
        pts = make_face()
        pts[40] = bad
        assert extract_metrics(pts, WIDTH) is None


class TestClassify:
    def test_returns_classification_result(self, make_face):
        result = FrameClassifier().classify(make_face(), WIDTH)
        assert isinstance(result, ClassificationResult)
        assert result.face_detected
        assert not result.alert_state.drowsy
        assert not result.alert_state.distracted

    def test_drowsy_after_consecutive_closed_frames(self, make_face):
        classifier = FrameClassifier()
        closed = make_face(eye_height=4.0)  # EAR 0.1
        results = [classifier.classify(closed, WIDTH) for _ in range(15)]
        assert not results[13].alert_state.drowsy
        assert results[14].alert_state.drowsy
        assert results[14].alarm_start

    def test_gaze_distraction(self, make_face):
        classifier = FrameClassifier()
        away = make_face(shift_x=192.0)  # 视线偏移 0.3
        results = [classifier.classify(away, WIDTH) for _ in range(10)]
        assert results[-1].alert_state.distracted
        assert results[-1].alarm_start

    def test_rotation_distraction(self, make_face):
        classifier = FrameClassifier(AlertThresholds(rotation_consec_frames=3))
        turned = make_face(rotation=0.3)
        results = [classifier.classify(turned, WIDTH) for _ in range(3)]
        assert [r.alert_state.distracted for r in results] == [False, False, True]

    def test_identical_input_gives_identical_metrics(self, make_face):
        classifier = FrameClassifier()
        face = make_face(eye_height=4.0, shift_x=10.0, rotation=0.05)
        results = [classifier.classify(face, WIDTH) for _ in range(20)]
        assert all(r.metrics == results[0].metrics for r in results)
        # 状态随累计计数变化
        assert results[0].alert_state.drowsy != results[-1].alert_state.drowsy

    def test_no_face_result(self):
        result = FrameClassifier().classify(None, WIDTH)
        assert not result.face_detected
        assert result.metrics is None
        assert not result.alert_state.alarm_active
        assert not result.alarm_start
        assert not result.alarm_stop

    def test_no_face_resets_streak(self, make_face):
        classifier = FrameClassifier()
        closed = make_face(eye_height=4.0)
        for _ in range(14):
            classifier.classify(closed, WIDTH)
        classifier.classify(None, WIDTH)
        result = classifier.classify(closed, WIDTH)
        assert result.alert_state.ear_frame_count == 1
        assert not result.alert_state.drowsy

    def test_no_face_stops_alarm(self, make_face):
        classifier = FrameClassifier()
        closed = make_face(eye_height=4.0)
        for _ in range(15):
            classifier.classify(closed, WIDTH)
        result = classifier.classify(make_face()[:10], WIDTH)
        assert not result.face_detected
        assert result.alarm_stop

    def test_zero_frame_width_does_not_raise(self, make_face):
        result = FrameClassifier().classify(make_face(), 0)
        assert result.metrics.gaze_offset == 0.0

    def test_drowsy_mode_ignores_distraction(self, make_face):
        classifier = FrameClassifier(mode="drowsy")
        away = make_face(shift_x=192.0, rotation=0.5)
        for _ in range(40):
            result = classifier.classify(away, WIDTH)
        assert not result.alert_state.distracted
        assert result.metrics.gaze_offset == pytest.approx(0.3)

    def test_invalid_mode_raises(self):
        with pytest.raises(ValueError):
            FrameClassifier(mode="hybrid")

    def test_reset(self, make_face):
        classifier = FrameClassifier()
        closed = make_face(eye_height=4.0)
        for _ in range(15):
            classifier.classify(closed, WIDTH)
        classifier.reset()
        result = classifier.classify(closed, WIDTH)
        assert result.alert_state.ear_frame_count == 1
