"""警报模块：按平台封装语音警报，并根据分类结果的边沿事件启停警报"""

import logging
import shutil
import subprocess
import sys
from typing import List, Optional

from models.data_models import ClassificationResult

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Wake up! Pay attention!"
DROWSY_MESSAGE = "Wake up!"

ALARM_KINDS = ("speech", "console", "none")


class Alarm:
    """警报能力接口"""

    def __init__(self):
        self.is_active = False

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class NullAlarm(Alarm):
    """静默警报，仅记录状态"""

    def start(self) -> None:
        self.is_active = True

    def stop(self) -> None:
        self.is_active = False


class ConsoleAlarm(Alarm):
    """在终端输出警报信息"""

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__()
        self.message = message

    def start(self) -> None:
        if self.is_active:
            return
        self.is_active = True
        print(f"[ALARM] {self.message}")

    def stop(self) -> None:
        self.is_active = False


def speech_command(message: str, platform: Optional[str] = None) -> Optional[List[str]]:
    """
    返回当前平台的语音播报命令。

    Args:
        message: 播报内容
        platform: 平台标识，缺省为 sys.platform

    Returns:
        命令参数列表；平台没有可用的语音命令时返回 None
    """
    platform = platform or sys.platform

    if platform == "darwin":
        return ["say", message]
    if platform.startswith("linux"):
        for tool in ("spd-say", "espeak"):
            if shutil.which(tool):
                return [tool, message]
        return None
    if platform.startswith("win"):
        script = (
            "Add-Type -AssemblyName System.Speech; "
            "(New-Object System.Speech.Synthesis.SpeechSynthesizer).Speak('{}')"
        ).format(message.replace("'", "''"))
        return ["powershell", "-NoProfile", "-Command", script]
    return None


class SpeechAlarm(Alarm):
    """以后台子进程播报语音，不阻塞检测循环"""

    def __init__(self, command: List[str]):
        super().__init__()
        self.command = command
        self._proc = None

    def start(self) -> None:
        if self.is_active:
            return
        self.is_active = True
        try:
            self._proc = subprocess.Popen(
                self.command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            self._proc = None
            logger.error("无法启动语音警报 %s: %s", self.command[0], e)

    def stop(self) -> None:
        self.is_active = False
        if self._proc is not None and self._proc.poll() is None:
            self._proc.terminate()
        self._proc = None


def create_alarm(kind: str = "speech", message: str = DEFAULT_MESSAGE) -> Alarm:
    """
    按类型创建警报。

    Args:
        kind: "speech" | "console" | "none"
        message: 警报内容

    Raises:
        ValueError: 不支持的警报类型
    """
    if kind == "none":
        return NullAlarm()
    if kind == "console":
        return ConsoleAlarm(message)
    if kind == "speech":
        command = speech_command(message)
        if command is None:
            print("警告: 当前平台没有可用的语音命令，回退到终端警报")
            return ConsoleAlarm(message)
        return SpeechAlarm(command)
    raise ValueError(f"不支持的警报类型: {kind}")


class AlarmController:
    """消费分类结果：alarm_start 启动警报，alarm_stop 停止警报"""

    def __init__(self, alarm: Alarm):
        self.alarm = alarm

    def handle(self, result: ClassificationResult) -> None:
        if result.alarm_start:
            reasons = ", ".join(result.alert_state.reasons)
            logger.warning("警报触发，原因: %s", reasons)
            self.alarm.start()
        elif result.alarm_stop:
            logger.info("警报解除")
            self.alarm.stop()

    def close(self) -> None:
        if self.alarm.is_active:
            self.alarm.stop()
