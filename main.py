"""驾驶员警觉检测系统入口文件"""

import argparse
import json
import logging
import sys

import cv2

from alarm.alarm import ALARM_KINDS, DEFAULT_MESSAGE, DROWSY_MESSAGE, AlarmController, create_alarm
from classifiers.frame_classifier import MODES, FrameClassifier
from detectors.face_detector import FaceDetector
from display.renderer import DisplayRenderer
from models.data_models import AlertThresholds

logger = logging.getLogger(__name__)

# 默认阈值
_DEFAULTS = {
    "ear_threshold": 0.25,
    "ear_consec_frames": 15,
    "gaze_offset_threshold": 0.25,
    "gaze_consec_frames": 10,
    "rotation_threshold": 0.1,
    "rotation_consec_frames": 30,
}

_FRAME_COUNT_KEYS = ("ear_consec_frames", "gaze_consec_frames", "rotation_consec_frames")

_WINDOW_NAME = "Driver Monitoring (EAR + Gaze + Rotation)"
_FRAME_WIDTH = 640
_FRAME_HEIGHT = 480
_KEY_ESC = 27


def _valid_value(key, value) -> bool:
    """帧数必须为正整数，阈值必须为非负数"""
    if isinstance(value, bool):
        return False
    if key in _FRAME_COUNT_KEYS:
        return isinstance(value, int) and value > 0
    return isinstance(value, (int, float)) and value >= 0


class DetectionSystem:
    """驾驶员警觉检测系统主程序，串联人脸检测、逐帧分类、警报和渲染。"""

    def __init__(self, mode="full", config_path=None, camera_index=0, alarm="speech",
                 snapshot_path="snapshot.png"):
        self.mode = mode
        self.camera_index = camera_index
        self.snapshot_path = snapshot_path
        self._cap = None

        # 加载配置
        config = self._load_config(config_path)
        self.thresholds = AlertThresholds(**config)

        # 初始化各模块
        self.face_detector = FaceDetector()
        self.classifier = FrameClassifier(self.thresholds, mode=mode)
        message = DEFAULT_MESSAGE if mode == "full" else DROWSY_MESSAGE
        self.alarm_controller = AlarmController(create_alarm(alarm, message))
        self.renderer = DisplayRenderer()

    @staticmethod
    def _load_config(config_path):
        """从 JSON 配置文件加载阈值参数，缺失或非法字段使用默认值。"""
        config = dict(_DEFAULTS)

        if config_path is None:
            return config

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            print(f"警告: 配置文件不存在 {config_path}，使用默认阈值")
            return config
        except json.JSONDecodeError:
            print(f"警告: 配置文件格式错误 {config_path}，使用默认阈值")
            return config

        if not isinstance(data, dict):
            print(f"警告: 配置文件格式错误 {config_path}，使用默认阈值")
            return config

        # 用配置文件中的值覆盖默认值
        for key in _DEFAULTS:
            if key not in data or data[key] is None:
                continue
            if not _valid_value(key, data[key]):
                print(f"警告: 配置项 {key}={data[key]!r} 无效，使用默认值 {_DEFAULTS[key]}")
                continue
            config[key] = data[key]

        return config

    def run(self):
        """启动主检测循环。"""
        self._cap = cv2.VideoCapture(self.camera_index)

        if not self._cap.isOpened():
            print("无法打开摄像头")
            sys.exit(1)

        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, _FRAME_WIDTH)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, _FRAME_HEIGHT)

        try:
            self._main_loop()
        finally:
            self.stop()

    def _main_loop(self):
        """视频流处理主循环。"""
        while True:
            ret, frame = self._cap.read()
            if not ret or frame is None:
                logger.info("视频流结束")
                break

            rendered = self.process_frame(frame)
            cv2.imshow(_WINDOW_NAME, rendered)

            # ESC / q 退出，s 保存截图
            key = cv2.waitKey(1) & 0xFF
            if key in (_KEY_ESC, ord("q")):
                break
            if key == ord("s"):
                cv2.imwrite(self.snapshot_path, rendered)
                logger.info("截图已保存: %s", self.snapshot_path)

    def process_frame(self, frame):
        """处理单帧：检测 → 分类 → 警报 → 渲染，返回渲染后的帧。"""
        landmarks = self.face_detector.detect(frame)
        result = self.classifier.classify(landmarks, frame.shape[1])
        self.alarm_controller.handle(result)
        return self.renderer.render(frame, landmarks, result)

    def stop(self):
        """释放摄像头资源、关闭窗口、停止警报并关闭人脸检测器。"""
        if self._cap is not None and self._cap.isOpened():
            self._cap.release()
        cv2.destroyAllWindows()
        self.alarm_controller.close()
        self.face_detector.close()


def main():
    parser = argparse.ArgumentParser(description="驾驶员警觉检测系统")
    parser.add_argument(
        "--mode",
        choices=list(MODES),
        default="full",
        help="检测模式: full(疲劳+分心), drowsy(仅疲劳)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON 阈值配置文件路径",
    )
    parser.add_argument("--camera", type=int, default=0, help="摄像头编号")
    parser.add_argument(
        "--alarm",
        choices=list(ALARM_KINDS),
        default="speech",
        help="警报方式: speech(语音), console(终端), none(关闭)",
    )
    parser.add_argument("--snapshot", type=str, default="snapshot.png", help="按 s 保存截图的路径")
    parser.add_argument("--log-level", default="INFO", help="日志级别")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    system = DetectionSystem(
        mode=args.mode, config_path=args.config, camera_index=args.camera,
        alarm=args.alarm, snapshot_path=args.snapshot,
    )
    system.run()


if __name__ == "__main__":
    main()
