"""阈值校准模块，利用标注图像数据集的统计分析优化 EAR、视线偏移、头部转动阈值"""

import argparse
import json
import logging
import math
import os
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np
from sklearn.metrics import accuracy_score, recall_score, roc_curve

from classifiers.frame_classifier import extract_metrics
from models.data_models import AlertThresholds, CalibrationResult, MetricSample

logger = logging.getLogger(__name__)

# 数据集类型 → (指标名, {子目录: 标签})
DATASET_LAYOUTS = {
    "eye_state": ("ear", {"open": "normal", "closed": "closed"}),
    "head_turn": ("rotation", {"forward": "normal", "turned": "turned"}),
    "gaze": ("gaze", {"center": "normal", "away": "away"}),
}

_POSITIVE_LABELS = {"ear": "closed", "rotation": "turned", "gaze": "away"}

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp")


def compute_stats(values: list) -> dict:
    """
    计算一组数值的统计信息。

    Args:
        values: 非空浮点数列表

    Returns:
        {"mean": float, "std": float, "min": float, "max": float}
    """
    n = len(values)
    mean = sum(values) / n
    std = math.sqrt(sum((x - mean) ** 2 for x in values) / n)
    return {
        "mean": mean,
        "std": std,
        "min": min(values),
        "max": max(values),
    }


def youden_threshold(labels: np.ndarray, scores: np.ndarray) -> Optional[float]:
    """
    用 Youden's J (max(tpr - fpr)) 在 ROC 曲线上选取 score 阈值。

    返回最优切点与下一个更低 score 的中点，使 score > 阈值 的严格比较
    与 ROC 的 score >= 切点 划分一致。两类样本不全时返回 None。
    """
    if len(np.unique(labels)) != 2:
        return None

    fpr, tpr, thresholds = roc_curve(labels, scores, drop_intermediate=False)
    j_scores = tpr - fpr
    best_idx = int(np.argmax(j_scores))

    cut = thresholds[best_idx]
    if not np.isfinite(cut):
        return None
    if best_idx + 1 < len(thresholds):
        return float((cut + thresholds[best_idx + 1]) / 2.0)
    return float(cut)


class ThresholdCalibrator:
    """加载标注数据集，统计各指标分布，通过 ROC 分析输出最优阈值"""

    def __init__(self):
        self._samples: Dict[str, List[Tuple[float, str]]] = {
            "ear": [], "gaze": [], "rotation": [],
        }
        self._dataset_types: List[str] = []
        self._calibration_result: Optional[CalibrationResult] = None

    def add_sample(self, metric: str, value: float, label: str) -> None:
        """直接添加一条 (指标值, 标签) 样本"""
        if metric not in self._samples:
            raise ValueError(f"不支持的指标: {metric}")
        self._samples[metric].append((float(value), label))
        self._calibration_result = None

    def load_dataset(self, dataset_path: str, dataset_type: str) -> None:
        """
        加载数据集并提取指标值。

        Args:
            dataset_path: 数据集根目录路径
            dataset_type: "eye_state" | "head_turn" | "gaze"

        Raises:
            ValueError: 路径无效或数据集类型不支持
        """
        if not os.path.isdir(dataset_path):
            raise ValueError(f"数据集路径无效: {dataset_path}")
        if dataset_type not in DATASET_LAYOUTS:
            raise ValueError(f"不支持的数据集类型: {dataset_type}")

        from detectors.face_detector import FaceDetector

        metric, subdirs = DATASET_LAYOUTS[dataset_type]
        detector = FaceDetector(static_image_mode=True)
        before = len(self._samples[metric])

        try:
            for subdir, label in subdirs.items():
                dir_path = os.path.join(dataset_path, subdir)
                if not os.path.isdir(dir_path):
                    logger.warning("子目录不存在: %s", dir_path)
                    continue
                self._process_images(dir_path, metric, label, detector)
        finally:
            detector.close()

        self._dataset_types.append(dataset_type)
        self._calibration_result = None
        logger.info(
            "数据集加载完成: %s 样本 %d 条",
            metric, len(self._samples[metric]) - before,
        )

    def _process_images(self, dir_path: str, metric: str, label: str, detector) -> None:
        """处理目录中的图像，提取指定指标"""
        for filename in sorted(os.listdir(dir_path)):
            if not filename.lower().endswith(_IMAGE_EXTENSIONS):
                continue
            sample = self._extract_from_image(os.path.join(dir_path, filename), detector)
            if sample is not None:
                self._samples[metric].append((self._metric_value(sample, metric), label))

    @staticmethod
    def _extract_from_image(filepath: str, detector) -> Optional[MetricSample]:
        """从单张图像提取指标，无人脸时返回 None"""
        image = cv2.imread(filepath)
        if image is None:
            logger.warning("无法读取图像: %s", filepath)
            return None

        landmarks = detector.detect(image)
        return extract_metrics(landmarks, image.shape[1])

    @staticmethod
    def _metric_value(sample: MetricSample, metric: str) -> float:
        if metric == "ear":
            return sample.ear
        if metric == "gaze":
            return sample.gaze_offset
        return sample.rotation

    def compute_statistics(self) -> dict:
        """
        计算各类别的指标分布统计。

        Returns:
            {"ear": {"normal": {mean, std, min, max}, "closed": {...}},
             "gaze": {...}, "rotation": {...}}
        """
        result: dict = {}
        for metric, samples in self._samples.items():
            groups: dict = {}
            for value, label in samples:
                groups.setdefault(label, []).append(value)
            result[metric] = {label: compute_stats(values) for label, values in groups.items()}
        return result

    def _optimize_metric(self, metric: str, default: float) -> Tuple[float, float, float]:
        """返回 (阈值, accuracy, recall)；样本不足时返回默认阈值和 0 指标"""
        samples = self._samples[metric]
        if not samples:
            return default, 0.0, 0.0

        values = np.array([v for v, _ in samples])
        labels = np.array([1 if lab == _POSITIVE_LABELS[metric] else 0 for _, lab in samples])

        if metric == "ear":
            # EAR 越低越可能闭眼，用 -EAR 作为 score
            scores = -values
        else:
            # 视线/转头按绝对值判定，与运行时 |x| > 阈值 一致
            scores = np.abs(values)

        cut = youden_threshold(labels, scores)
        if cut is None:
            return default, 0.0, 0.0

        if metric == "ear":
            threshold = -cut
            preds = (values < threshold).astype(int)
        else:
            threshold = cut
            preds = (scores > threshold).astype(int)

        acc = float(accuracy_score(labels, preds))
        rec = float(recall_score(labels, preds, zero_division=0))
        return float(threshold), acc, rec

    def optimize_thresholds(self) -> CalibrationResult:
        """
        基于 ROC 曲线分析输出三个最优阈值。

        Returns:
            CalibrationResult 包含最优阈值和评估指标
        """
        defaults = AlertThresholds()
        ear_t, ear_acc, ear_rec = self._optimize_metric("ear", defaults.ear_threshold)
        gaze_t, gaze_acc, gaze_rec = self._optimize_metric("gaze", defaults.gaze_offset_threshold)
        rot_t, rot_acc, rot_rec = self._optimize_metric("rotation", defaults.rotation_threshold)

        self._calibration_result = CalibrationResult(
            optimal_ear_threshold=ear_t,
            optimal_gaze_threshold=gaze_t,
            optimal_rotation_threshold=rot_t,
            ear_accuracy=ear_acc,
            ear_recall=ear_rec,
            gaze_accuracy=gaze_acc,
            gaze_recall=gaze_rec,
            rotation_accuracy=rot_acc,
            rotation_recall=rot_rec,
            distributions=self.compute_statistics(),
        )
        return self._calibration_result

    def export_config(self, output_path: str) -> None:
        """
        导出 JSON 配置文件，可直接通过 main.py --config 加载。

        Args:
            output_path: 输出 JSON 文件路径
        """
        if self._calibration_result is None:
            self.optimize_thresholds()

        result = self._calibration_result
        defaults = AlertThresholds()

        config = {
            "ear_threshold": result.optimal_ear_threshold,
            "ear_consec_frames": defaults.ear_consec_frames,
            "gaze_offset_threshold": result.optimal_gaze_threshold,
            "gaze_consec_frames": defaults.gaze_consec_frames,
            "rotation_threshold": result.optimal_rotation_threshold,
            "rotation_consec_frames": defaults.rotation_consec_frames,
            "calibration_info": {
                "ear_accuracy": result.ear_accuracy,
                "ear_recall": result.ear_recall,
                "gaze_accuracy": result.gaze_accuracy,
                "gaze_recall": result.gaze_recall,
                "rotation_accuracy": result.rotation_accuracy,
                "rotation_recall": result.rotation_recall,
                "calibrated_at": datetime.now().isoformat(),
                "datasets": list(self._dataset_types),
            },
        }

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=4, ensure_ascii=False)

        logger.info("配置文件已导出: %s", output_path)


def main():
    parser = argparse.ArgumentParser(description="警觉检测阈值校准")
    parser.add_argument(
        "--dataset", action="append", nargs=2, metavar=("TYPE", "PATH"), required=True,
        help="数据集类型与路径，可重复: eye_state / head_turn / gaze",
    )
    parser.add_argument("--output", default="config/calibrated.json", help="输出配置文件路径")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    calibrator = ThresholdCalibrator()
    for dataset_type, path in args.dataset:
        calibrator.load_dataset(path, dataset_type)

    result = calibrator.optimize_thresholds()
    print(f"EAR 阈值: {result.optimal_ear_threshold:.4f} (acc={result.ear_accuracy:.3f})")
    print(f"视线偏移阈值: {result.optimal_gaze_threshold:.4f} (acc={result.gaze_accuracy:.3f})")
    print(f"头部转动阈值: {result.optimal_rotation_threshold:.4f} (acc={result.rotation_accuracy:.3f})")
    calibrator.export_config(args.output)


if __name__ == "__main__":
    main()
