import sys
import os

# Add project root to sys.path so tests can import from all modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest  # noqa: E402
from hypothesis import settings  # noqa: E402

# CI profile: more examples for thorough testing
settings.register_profile("ci", max_examples=200)
# Dev profile: fewer examples for faster iteration
settings.register_profile("dev", max_examples=100)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "dev"))


def build_face(eye_height=12.0, shift_x=0.0, rotation=0.0):
    """
    生成 68 点关键点。

    两眼宽 40px，外眼角间距 140px，眼角中点位于 x=320（640 宽画面中心）。
    EAR = eye_height / 40；shift_x 整体平移（视线偏移 = shift_x / 640）；
    rotation 为鼻尖相对眼角中点的归一化偏移。
    """
    pts = [(320.0 + shift_x, 300.0)] * 68

    def eye(x0):
        w = 40.0
        h = eye_height
        return [
            (x0, 200.0),
            (x0 + w / 3, 200.0 - h / 2),
            (x0 + 2 * w / 3, 200.0 - h / 2),
            (x0 + w, 200.0),
            (x0 + 2 * w / 3, 200.0 + h / 2),
            (x0 + w / 3, 200.0 + h / 2),
        ]

    # 左眼外角 250，右眼内角 350 → 右眼外角（索引 3）390
    pts[36:42] = eye(250.0 + shift_x)
    pts[42:48] = eye(350.0 + shift_x)
    pts[30] = (320.0 + shift_x + rotation * 140.0, 260.0)
    return pts


@pytest.fixture
def make_face():
    return build_face
