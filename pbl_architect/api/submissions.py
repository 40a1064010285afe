"""学生提交与 AI 评估的路由实现。"""

from fastapi import APIRouter, Depends, HTTPException, status

from pbl_architect.dependencies import get_assignment_service
from pbl_architect.schemas.api import SubmissionCreate
from pbl_architect.schemas.records import Submission
from pbl_architect.services.agents import EvaluationError
from pbl_architect.services.assignments import AssignmentNotFoundError, AssignmentService
from pbl_architect.utils.storage import StorageCapacityError

router = APIRouter()


@router.post("", response_model=Submission, status_code=status.HTTP_201_CREATED)
async def create_submission(
    payload: SubmissionCreate,
    service: AssignmentService = Depends(get_assignment_service),
) -> Submission:
    try:
        return await service.submit(
            payload.assignment_id,
            payload.content_text,
            image=payload.image,
            student_name=payload.student_name,
        )
    except AssignmentNotFoundError as exc:
        raise HTTPException(status_code=404, detail="作业不存在") from exc
    except EvaluationError as exc:
        raise HTTPException(status_code=502, detail="评估失败，请重试。") from exc
    except StorageCapacityError as exc:
        raise HTTPException(status_code=413, detail="存储空间不足，提交未保存") from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/{submission_id}", response_model=Submission)
def get_submission(
    submission_id: str, service: AssignmentService = Depends(get_assignment_service)
) -> Submission:
    submission = service.repository.get_submission(submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="提交不存在")
    return submission
