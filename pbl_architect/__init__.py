"""PBL 作业架构师：知识库增强的跨学科作业生成、评估与提示。"""

__version__ = "0.1.0"
