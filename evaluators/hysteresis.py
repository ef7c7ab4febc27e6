"""连续帧去抖计数器"""


class HysteresisCounter:
    """统计条件连续成立的帧数，达到阈值后输出触发信号；条件一旦不成立立即清零。"""

    def __init__(self, threshold: int):
        """
        Args:
            threshold: 触发所需的连续帧数，必须为正整数

        Raises:
            ValueError: threshold 不是正整数时抛出
        """
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold <= 0:
            raise ValueError(f"连续帧阈值必须为正整数: {threshold!r}")
        self.threshold = threshold
        self.count = 0

    def update(self, condition: bool) -> bool:
        """喂入一帧条件，返回是否已触发"""
        if condition:
            self.count += 1
        else:
            self.count = 0
        return self.triggered

    @property
    def triggered(self) -> bool:
        return self.count >= self.threshold

    def reset(self):
        """重置帧计数器"""
        self.count = 0
