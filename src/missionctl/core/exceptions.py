"""missionctl 异常体系

"未找到" 不是异常：服务层以 None 表示，由传输层映射为 404。
"""


class MissionControlError(Exception):
    """missionctl 基础异常"""


class StorageError(MissionControlError):
    """持久化层失败（连接不可用、约束冲突、SQL 执行失败等）

    由 Store 抛出，服务层原样向上传播，不重试。
    传输层统一渲染为 500，不向客户端暴露底层细节。
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        """
        Args:
            message: 错误描述（仅用于日志）
            original_error: 底层存储异常
        """
        super().__init__(message)
        self.original_error = original_error
