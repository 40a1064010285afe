"""文件暂存与解析相关的路由实现。"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from pbl_architect.dependencies import StagingRegistry, get_staging_registry
from pbl_architect.schemas.api import StagedFileResponse
from pbl_architect.schemas.records import SourceFile

router = APIRouter()


@router.post("/{session_id}/files", response_model=List[StagedFileResponse])
async def upload_files(
    session_id: str,
    files: List[UploadFile] = File(...),
    registry: StagingRegistry = Depends(get_staging_registry),
) -> List[StagedFileResponse]:
    """暂存上传文件并逐个解析，返回会话中全部文件的最新状态。"""

    queue = registry.get(session_id)
    sources = [
        SourceFile(
            filename=upload.filename or "uploaded",
            content_type=upload.content_type,
            data=await upload.read(),
        )
        for upload in files
    ]
    queue.stage(sources)
    await queue.process()
    return [StagedFileResponse.from_entry(entry) for entry in queue.list_all()]


@router.get("/{session_id}/files", response_model=List[StagedFileResponse])
def list_files(
    session_id: str, registry: StagingRegistry = Depends(get_staging_registry)
) -> List[StagedFileResponse]:
    queue = registry.find(session_id)
    if queue is None:
        return []
    return [StagedFileResponse.from_entry(entry) for entry in queue.list_all()]


@router.delete("/{session_id}/files/{file_id}")
def remove_file(
    session_id: str,
    file_id: str,
    registry: StagingRegistry = Depends(get_staging_registry),
) -> dict[str, str]:
    queue = registry.find(session_id)
    if queue is None or not queue.remove(file_id):
        raise HTTPException(status_code=404, detail="文件不存在")
    return {"status": "deleted"}


@router.delete("/{session_id}")
def clear_session(
    session_id: str, registry: StagingRegistry = Depends(get_staging_registry)
) -> dict[str, str]:
    registry.drop(session_id)
    return {"status": "cleared"}
