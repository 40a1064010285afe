"""Agent 输出契约。

三个 Agent 中 A、B 两个的输出必须严格符合这里声明的结构：

- ``ASSIGNMENT_RESPONSE_SCHEMA`` / ``EVALUATION_RESPONSE_SCHEMA`` 作为
  schema-guided decoding 的约束随请求一起发送给生成后端；
- ``AssignmentContent`` / ``AIEvaluation`` 在后端返回原始文本后做二次校验，
  不依赖后端 SDK 自身的类型系统。

分数、任务编号与 ``effort_detected`` 不做类型转换，布尔值或字符串一律视为不合法。
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pbl_architect.models.enums import Rating


class Task(BaseModel):
    """作业中的单个任务。"""

    model_config = ConfigDict(frozen=True)

    id: int = Field(strict=True)
    question: str = Field(min_length=1)
    subject_focus: str = Field(min_length=1)


class EvaluationCriteria(BaseModel):
    """作业的评价要点。"""

    model_config = ConfigDict(frozen=True)

    knowledge_points: List[str]
    core_competencies: List[str]


class AssignmentContent(BaseModel):
    """Agent A 生成的作业主体，生成后不可修改。"""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    scenario: str = Field(min_length=1)
    tasks: List[Task] = Field(min_length=1)
    evaluation_criteria: EvaluationCriteria

    @field_validator("tasks")
    @classmethod
    def _unique_task_ids(cls, tasks: List[Task]) -> List[Task]:
        seen: set[int] = set()
        for task in tasks:
            if task.id in seen:
                raise ValueError(f"duplicate task id: {task.id}")
            seen.add(task.id)
        return tasks


class FeedbackDimensions(BaseModel):
    """Agent B 的分维度判断。"""

    model_config = ConfigDict(frozen=True)

    accuracy: Rating
    creativity: Rating
    effort_detected: bool = Field(strict=True)


class AIEvaluation(BaseModel):
    """Agent B 对一次提交的评价结果。"""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0, le=100, strict=True)
    feedback_summary: str
    dimensions: FeedbackDimensions
    detailed_comments: List[str]


_RATING_VALUES = [rating.value for rating in Rating]

ASSIGNMENT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "作业标题"},
        "scenario": {"type": "string", "description": "基于真实现象的任务情境"},
        "tasks": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "integer"},
                    "question": {"type": "string", "description": "具体的任务问题"},
                    "subject_focus": {"type": "string", "description": "该任务侧重的学科"},
                },
                "required": ["id", "question", "subject_focus"],
            },
        },
        "evaluation_criteria": {
            "type": "object",
            "properties": {
                "knowledge_points": {"type": "array", "items": {"type": "string"}},
                "core_competencies": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["knowledge_points", "core_competencies"],
        },
    },
    "required": ["title", "scenario", "tasks", "evaluation_criteria"],
}

EVALUATION_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "description": "0-100 的得分"},
        "feedback_summary": {"type": "string", "description": "鼓励或挑战式的总结"},
        "dimensions": {
            "type": "object",
            "properties": {
                "accuracy": {"type": "string", "enum": _RATING_VALUES},
                "creativity": {"type": "string", "enum": _RATING_VALUES},
                "effort_detected": {"type": "boolean"},
            },
            "required": ["accuracy", "creativity", "effort_detected"],
        },
        "detailed_comments": {
            "type": "array",
            "items": {"type": "string", "description": "具体的逐条评语"},
        },
    },
    "required": ["score", "feedback_summary", "dimensions", "detailed_comments"],
}
