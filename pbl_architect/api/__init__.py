"""API 路由包入口。"""

from fastapi import APIRouter

from pbl_architect.api import assignments, knowledge, staging, submissions

router = APIRouter(prefix="/api")

router.include_router(staging.router, prefix="/staging", tags=["暂存区"])
router.include_router(knowledge.router, prefix="/knowledge", tags=["知识库"])
router.include_router(assignments.router, prefix="/assignments", tags=["作业"])
router.include_router(submissions.router, prefix="/submissions", tags=["提交"])
