"""持久化与工作集中的数据记录。

字段统一使用 snake_case，``model_dump(mode="json")`` 的结果即写入键值存储的内容。
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pbl_architect.models.enums import Difficulty, StagingStatus
from pbl_architect.schemas.contracts import AIEvaluation, AssignmentContent


class SourceFile(BaseModel):
    """用户选择的原始文件。"""

    filename: str
    content_type: Optional[str] = None
    data: bytes = b""


class StagedFile(BaseModel):
    """暂存区中的单个文件，只由 FileStagingQueue 修改。"""

    id: str
    source: SourceFile
    status: StagingStatus = StagingStatus.PENDING
    extracted_text: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def filename(self) -> str:
        return self.source.filename


class CustomKnowledgeBase(BaseModel):
    """持久化的自定义知识库。"""

    content: str
    source_label: str
    updated_at: datetime


class Assignment(BaseModel):
    """已生成并保存的作业。"""

    id: str
    topic: str
    subjects: List[str]
    difficulty: Difficulty
    content: AssignmentContent
    created_at: datetime
    standards_ref: Optional[str] = None


class Submission(BaseModel):
    """学生提交，评价完成后附带 AI 评价。"""

    id: str
    assignment_id: str
    student_name: str
    content_text: str = ""
    image_url: Optional[str] = None
    ai_evaluation: Optional[AIEvaluation] = None
    created_at: datetime
