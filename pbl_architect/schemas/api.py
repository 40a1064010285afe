"""HTTP 接口的请求/响应模型。"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from pbl_architect.models.enums import Difficulty, KnowledgeBaseMode, StagingStatus
from pbl_architect.schemas.records import StagedFile


class StagedFileResponse(BaseModel):
    """暂存文件的状态，不返回原始字节。"""

    id: str
    filename: str
    status: StagingStatus
    error_message: Optional[str] = None
    char_count: int = 0
    preview: str = ""

    @classmethod
    def from_entry(cls, entry: StagedFile, max_preview: int = 120) -> "StagedFileResponse":
        text = entry.extracted_text or ""
        cleaned = " ".join(text.split())
        return cls(
            id=entry.id,
            filename=entry.filename,
            status=entry.status,
            error_message=entry.error_message,
            char_count=len(text),
            preview=cleaned[:max_preview] + ("..." if len(cleaned) > max_preview else ""),
        )


class KnowledgeBaseResponse(BaseModel):
    mode: KnowledgeBaseMode
    source_label: str
    updated_at: Optional[datetime] = None
    char_count: int


class CorpusResponse(BaseModel):
    source_label: str
    corpus: str


class PromoteRequest(BaseModel):
    """把某个会话暂存区中的文件写入自定义知识库。"""

    session_id: str
    file_ids: List[str] = Field(min_length=1)


class ModeRequest(BaseModel):
    mode: KnowledgeBaseMode


class GenerateAssignmentRequest(BaseModel):
    """生成作业的入参；``session_id`` 用于带上该会话暂存区中的临时资料。"""

    topic: str = Field(min_length=1)
    subjects: List[str] = Field(min_length=1)
    difficulty: Difficulty = Difficulty.BASIC
    session_id: Optional[str] = None


class PresetsResponse(BaseModel):
    topics: List[str]
    subjects: List[str]


class HintRequest(BaseModel):
    draft: str = ""


class HintResponse(BaseModel):
    hint: str


class SubmissionCreate(BaseModel):
    """学生提交：文字答案与可选图片（base64 或 data URL）。"""

    assignment_id: str
    content_text: str = ""
    image: Optional[str] = None
    student_name: str = "学生用户"
