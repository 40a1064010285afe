"""作业生成、查询与学习提示的路由实现。"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from pbl_architect.dependencies import (
    StagingRegistry,
    build_assembler,
    get_assignment_service,
    get_knowledge_state,
    get_staging_registry,
    get_store,
)
from pbl_architect.schemas.api import (
    GenerateAssignmentRequest,
    HintRequest,
    HintResponse,
    PresetsResponse,
)
from pbl_architect.schemas.records import Assignment, Submission
from pbl_architect.services.agents import GenerationError
from pbl_architect.services.assignments import (
    SUBJECT_CHOICES,
    TOPIC_PRESETS,
    AssignmentNotFoundError,
    AssignmentService,
)
from pbl_architect.services.knowledge import KnowledgeBaseState
from pbl_architect.utils.storage import KeyValueStore, StorageCapacityError

router = APIRouter()


@router.get("/presets", response_model=PresetsResponse)
def get_presets() -> PresetsResponse:
    """热门主题与可选学科。"""

    return PresetsResponse(topics=TOPIC_PRESETS, subjects=SUBJECT_CHOICES)


@router.post("", response_model=Assignment, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: GenerateAssignmentRequest,
    service: AssignmentService = Depends(get_assignment_service),
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
    registry: StagingRegistry = Depends(get_staging_registry),
) -> Assignment:
    assembler = build_assembler(store, state, registry.find(payload.session_id))
    try:
        return await service.create_assignment(
            payload.topic, payload.subjects, payload.difficulty, assembler
        )
    except GenerationError as exc:
        raise HTTPException(status_code=502, detail="生成失败，请稍后重试。") from exc
    except StorageCapacityError as exc:
        raise HTTPException(status_code=413, detail="存储空间不足，作业未保存") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("", response_model=List[Assignment])
def list_assignments(
    q: str = "", service: AssignmentService = Depends(get_assignment_service)
) -> List[Assignment]:
    return service.repository.search_assignments(q)


@router.get("/{assignment_id}", response_model=Assignment)
def get_assignment(
    assignment_id: str, service: AssignmentService = Depends(get_assignment_service)
) -> Assignment:
    assignment = service.repository.get_assignment(assignment_id)
    if not assignment:
        raise HTTPException(status_code=404, detail="作业不存在")
    return assignment


@router.get("/{assignment_id}/submissions", response_model=List[Submission])
def list_assignment_submissions(
    assignment_id: str, service: AssignmentService = Depends(get_assignment_service)
) -> List[Submission]:
    return service.repository.list_submissions_for(assignment_id)


@router.post("/{assignment_id}/hint", response_model=HintResponse)
async def get_hint(
    assignment_id: str,
    payload: HintRequest,
    service: AssignmentService = Depends(get_assignment_service),
) -> HintResponse:
    try:
        hint = await service.hint(assignment_id, payload.draft)
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=404, detail="作业不存在") from exc
    return HintResponse(hint=hint)
