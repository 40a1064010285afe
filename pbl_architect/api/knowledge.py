"""知识库查看、入库与重置的路由实现。"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from pbl_architect.dependencies import (
    StagingRegistry,
    build_assembler,
    get_knowledge_state,
    get_staging_registry,
    get_store,
)
from pbl_architect.models.enums import KnowledgeBaseMode
from pbl_architect.schemas.api import (
    CorpusResponse,
    KnowledgeBaseResponse,
    ModeRequest,
    PromoteRequest,
)
from pbl_architect.services.knowledge import KnowledgeBaseAssembler, KnowledgeBaseState
from pbl_architect.utils.storage import KeyValueStore, StorageCapacityError

router = APIRouter()


def _describe(assembler: KnowledgeBaseAssembler) -> KnowledgeBaseResponse:
    record = assembler.state.custom_record
    return KnowledgeBaseResponse(
        mode=assembler.state.mode,
        source_label=assembler.source_label(),
        updated_at=record.updated_at if record else None,
        char_count=len(assembler.base_corpus()),
    )


@router.get("", response_model=KnowledgeBaseResponse)
def get_knowledge_base(
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
) -> KnowledgeBaseResponse:
    return _describe(build_assembler(store, state))


@router.get("/corpus", response_model=CorpusResponse)
def get_corpus(
    session_id: Optional[str] = None,
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
    registry: StagingRegistry = Depends(get_staging_registry),
) -> CorpusResponse:
    """返回生成时实际使用的知识库文本（含该会话的临时资料）。"""

    assembler = build_assembler(store, state, registry.find(session_id))
    return CorpusResponse(source_label=assembler.source_label(), corpus=assembler.active_corpus())


@router.post("/promote", response_model=KnowledgeBaseResponse)
def promote_files(
    payload: PromoteRequest,
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
    registry: StagingRegistry = Depends(get_staging_registry),
) -> KnowledgeBaseResponse:
    queue = registry.find(payload.session_id)
    if queue is None:
        raise HTTPException(status_code=404, detail="暂存会话不存在")
    assembler = build_assembler(store, state, queue)
    try:
        assembler.promote(payload.file_ids)
    except StorageCapacityError as exc:
        raise HTTPException(status_code=413, detail="知识库超出存储上限，请减少所选文件") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _describe(assembler)


@router.post("/reset", response_model=KnowledgeBaseResponse)
def reset_knowledge_base(
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
) -> KnowledgeBaseResponse:
    assembler = build_assembler(store, state)
    assembler.reset()
    return _describe(assembler)


@router.post("/mode", response_model=KnowledgeBaseResponse)
def switch_mode(
    payload: ModeRequest,
    store: KeyValueStore = Depends(get_store),
    state: KnowledgeBaseState = Depends(get_knowledge_state),
) -> KnowledgeBaseResponse:
    assembler = build_assembler(store, state)
    if payload.mode == KnowledgeBaseMode.DEFAULT:
        assembler.use_default()
    else:
        try:
            assembler.use_custom()
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _describe(assembler)
