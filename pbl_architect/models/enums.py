"""枚举定义 - 难度、暂存状态、知识库模式、评价等级。"""

import enum


class Difficulty(str, enum.Enum):
    """作业难度。"""

    BASIC = "basic"            # 基础概念：理解核心定义，建立学科间初步联系
    CHALLENGE = "challenge"    # 深度探究：开放式问题，需要推理与论证


class StagingStatus(str, enum.Enum):
    """暂存文件解析状态机。

    只允许 ``pending → parsing → {success, error}`` 单向流转。
    """

    PENDING = "pending"
    PARSING = "parsing"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (StagingStatus.SUCCESS, StagingStatus.ERROR)


class KnowledgeBaseMode(str, enum.Enum):
    """当前生效的基础知识库。"""

    DEFAULT = "default"    # 系统内置课程标准
    CUSTOM = "custom"      # 教师上传并入库的自定义资料


class Rating(str, enum.Enum):
    """评价维度的三档等级。"""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
