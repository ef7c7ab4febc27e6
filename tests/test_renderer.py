"""DisplayRenderer 单元测试"""

import numpy as np

from display.renderer import DisplayRenderer, format_value
from models.data_models import AlertState, ClassificationResult, MetricSample


# --------------- helpers ---------------

def _make_frame(w=640, h=480):
    """创建黑色测试帧。"""
    return np.zeros((h, w, 3), dtype=np.uint8)


def _result(face_detected=True, drowsy=False, distracted=False):
    metrics = MetricSample(ear=0.3, gaze_offset=0.01, rotation=-0.02) if face_detected else None
    state = AlertState(drowsy=drowsy, distracted=distracted, alarm_active=drowsy or distracted)
    return ClassificationResult(
        face_detected=face_detected, metrics=metrics, alert_state=state,
        alarm_start=False, alarm_stop=False,
    )


def _red_pixels(frame):
    b, g, r = frame[..., 0], frame[..., 1], frame[..., 2]
    return int(np.count_nonzero((r > 200) & (g < 50) & (b < 50)))


# --------------- format_value tests ---------------

class TestFormatValue:
    def test_two_decimal_places(self):
        assert format_value(0.123456) == "0.12"

    def test_zero(self):
        assert format_value(0.0) == "0.00"

    def test_negative(self):
        assert format_value(-0.5) == "-0.50"


# --------------- render tests ---------------

class TestRender:
    def setup_method(self):
        self.renderer = DisplayRenderer()

    def test_render_returns_ndarray(self, make_face):
        frame = _make_frame()
        result = self.renderer.render(frame, make_face(), _result())
        assert isinstance(result, np.ndarray)
        assert result.shape == frame.shape

    def test_render_does_not_modify_original(self, make_face):
        frame = _make_frame()
        original = frame.copy()
        self.renderer.render(frame, make_face(), _result(drowsy=True, distracted=True))
        np.testing.assert_array_equal(frame, original)

    def test_render_draws_landmarks_and_text(self, make_face):
        result = self.renderer.render(_make_frame(), make_face(), _result())
        assert np.any(result > 0)

    def test_eye_points_are_drawn(self, make_face):
        result = self.renderer.render(_make_frame(), make_face(), _result())
        # 左眼外眼角 (250, 200) 绘制为黄色 (BGR 0,255,255)
        assert tuple(result[200, 250]) == (0, 255, 255)

    def test_alert_banners_add_red(self, make_face):
        calm = self.renderer.render(_make_frame(), make_face(), _result())
        alert = self.renderer.render(_make_frame(), make_face(), _result(drowsy=True, distracted=True))
        assert _red_pixels(alert) > _red_pixels(calm)

    def test_distracted_banner_region(self, make_face):
        calm = self.renderer.render(_make_frame(), make_face(), _result())
        alert = self.renderer.render(_make_frame(), make_face(), _result(distracted=True))
        # DISTRACTED 文字位于 y≈170
        assert _red_pixels(alert[140:180, :250]) > _red_pixels(calm[140:180, :250])

    def test_no_face_renders_notice_only(self):
        result = self.renderer.render(_make_frame(), None, _result(face_detected=False))
        assert np.any(result[:40, :200] > 0)
        assert _red_pixels(result) == 0

    def test_short_landmarks_skip_points(self, make_face):
        result = self.renderer.render(_make_frame(), make_face()[:20], _result())
        assert tuple(result[200, 250]) == (0, 0, 0)
