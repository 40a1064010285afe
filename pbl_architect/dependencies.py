"""FastAPI 依赖注入工具。"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from fastapi import Depends

from pbl_architect.config import get_settings
from pbl_architect.services.agents import EvaluationAgent, GenerationAgent, HintAgent
from pbl_architect.services.ai import GeminiBackend, GenerationBackend
from pbl_architect.services.assignments import AssignmentRepository, AssignmentService
from pbl_architect.services.knowledge import KnowledgeBaseAssembler, KnowledgeBaseState
from pbl_architect.services.staging import FileStagingQueue
from pbl_architect.utils.storage import JsonFileStore, KeyValueStore


class StagingRegistry:
    """每个编辑会话一个暂存区，只保存在进程内存中。"""

    def __init__(self, max_pdf_pages: int) -> None:
        self.max_pdf_pages = max_pdf_pages
        self._queues: Dict[str, FileStagingQueue] = {}

    def get(self, session_id: str) -> FileStagingQueue:
        queue = self._queues.get(session_id)
        if queue is None:
            queue = FileStagingQueue(max_pdf_pages=self.max_pdf_pages)
            self._queues[session_id] = queue
        return queue

    def find(self, session_id: Optional[str]) -> Optional[FileStagingQueue]:
        if not session_id:
            return None
        return self._queues.get(session_id)

    def drop(self, session_id: str) -> None:
        self._queues.pop(session_id, None)


@lru_cache(maxsize=1)
def get_store() -> KeyValueStore:
    settings = get_settings()
    return JsonFileStore(settings.storage_dir, settings.store_max_value_bytes)


@lru_cache(maxsize=1)
def get_backend() -> GenerationBackend:
    return GeminiBackend(get_settings())


@lru_cache(maxsize=1)
def get_staging_registry() -> StagingRegistry:
    return StagingRegistry(get_settings().pdf_max_pages)


@lru_cache(maxsize=1)
def get_knowledge_state() -> KnowledgeBaseState:
    return KnowledgeBaseState.load(get_store())


def build_assembler(
    store: KeyValueStore,
    state: KnowledgeBaseState,
    staging: Optional[FileStagingQueue] = None,
) -> KnowledgeBaseAssembler:
    """组装知识库；未指定会话时使用空暂存区，即只有基础知识库。"""

    return KnowledgeBaseAssembler(store, staging or FileStagingQueue(), state)


def get_assignment_service(
    store: KeyValueStore = Depends(get_store),
    backend: GenerationBackend = Depends(get_backend),
) -> AssignmentService:
    settings = get_settings()
    return AssignmentService(
        AssignmentRepository(store),
        GenerationAgent(backend, settings),
        EvaluationAgent(backend, settings),
        HintAgent(backend, settings),
    )
