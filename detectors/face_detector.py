"""人脸关键点检测模块，基于 MediaPipe FaceMesh，输出 68 点布局"""

from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from models.data_models import Point2D

# FaceMesh 468 点 → iBUG 68 点索引映射
MEDIAPIPE_TO_68 = [
    # 下颌轮廓 0-16
    127, 234, 93, 132, 58, 136, 150, 176, 152, 400, 379, 365, 288, 361, 323, 454, 356,
    # 眉毛 17-26
    70, 63, 105, 66, 107, 336, 296, 334, 293, 300,
    # 鼻梁与鼻底 27-35（30 为鼻尖）
    168, 197, 5, 4, 75, 97, 2, 326, 305,
    # 左眼 36-41
    33, 160, 158, 133, 153, 144,
    # 右眼 42-47
    362, 385, 387, 263, 373, 380,
    # 嘴巴 48-67
    61, 39, 37, 0, 267, 269, 291, 405, 314, 17, 84, 181, 78, 82, 13, 312, 308, 317, 14, 87,
]


def _bbox_area(points: List[Point2D]) -> float:
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return (max(xs) - min(xs)) * (max(ys) - min(ys))


class FaceDetector:
    """使用 MediaPipe FaceMesh 检测人脸关键点"""

    def __init__(
        self,
        max_num_faces: int = 1,
        min_detection_confidence: float = 0.5,
        static_image_mode: bool = False,
    ):
        """初始化 MediaPipe FaceMesh"""
        self._face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=static_image_mode,
            max_num_faces=max_num_faces,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=0.5,
            refine_landmarks=False,
        )

    def detect(self, frame: np.ndarray) -> Optional[List[Point2D]]:
        """
        检测单帧图像中的人脸关键点。

        Args:
            frame: BGR 格式的 OpenCV 图像帧

        Returns:
            68 个像素坐标关键点；多张人脸时取关键点包围盒最大者；未检测到人脸时返回 None
        """
        h, w = frame.shape[:2]

        # BGR -> RGB
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        rgb_frame.flags.writeable = False

        results = self._face_mesh.process(rgb_frame)

        if not results.multi_face_landmarks:
            return None

        faces = []
        for face in results.multi_face_landmarks:
            mesh = face.landmark
            if len(mesh) <= max(MEDIAPIPE_TO_68):
                continue
            # 将归一化坐标转换为像素坐标
            faces.append([
                Point2D(mesh[i].x * w, mesh[i].y * h) for i in MEDIAPIPE_TO_68
            ])

        if not faces:
            return None

        return max(faces, key=_bbox_area)

    def close(self):
        """释放 MediaPipe 资源"""
        self._face_mesh.close()
