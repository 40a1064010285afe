"""Assignment & submission service functions.

作业列表只追加；提交按 id 覆盖写入。评估成功后才把提交连同 AI 评价一起
保存，评估失败时不留下任何记录。
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from pbl_architect.models.enums import Difficulty
from pbl_architect.schemas.records import Assignment, Submission
from pbl_architect.services.agents import EvaluationAgent, GenerationAgent, HintAgent
from pbl_architect.services.knowledge import KnowledgeBaseAssembler
from pbl_architect.utils.storage import KeyValueStore

logger = logging.getLogger(__name__)

ASSIGNMENTS_KEY = "assignments"
SUBMISSIONS_KEY = "submissions"
DEFAULT_STUDENT_NAME = "学生用户"

TOPIC_PRESETS = [
    "火星殖民计划",
    "全球变暖与碳中和",
    "丝绸之路的贸易",
    "从达芬奇到现代医学",
    "设计一个可持续城市",
    "微塑料对海洋的影响",
]
SUBJECT_CHOICES = ["数学", "物理", "化学", "生物", "历史", "地理", "文学", "艺术"]


class AssignmentNotFoundError(LookupError):
    """作业不存在。"""


class AssignmentRepository:
    """基于键值存储的作业与提交表。"""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load_assignments(self) -> List[Assignment]:
        return [Assignment.model_validate(item) for item in self.store.get(ASSIGNMENTS_KEY) or []]

    def _load_submissions(self) -> List[Submission]:
        return [Submission.model_validate(item) for item in self.store.get(SUBMISSIONS_KEY) or []]

    def save_assignment(self, assignment: Assignment) -> None:
        current = self.store.get(ASSIGNMENTS_KEY) or []
        current.append(assignment.model_dump(mode="json"))
        self.store.put(ASSIGNMENTS_KEY, current)

    def list_assignments(self, newest_first: bool = True) -> List[Assignment]:
        assignments = self._load_assignments()
        return list(reversed(assignments)) if newest_first else assignments

    def get_assignment(self, assignment_id: str) -> Optional[Assignment]:
        for assignment in self._load_assignments():
            if assignment.id == assignment_id:
                return assignment
        return None

    def search_assignments(self, keyword: str) -> List[Assignment]:
        """按标题、情境或学科过滤，空关键字返回全部。"""

        keyword = keyword.strip()
        assignments = self.list_assignments()
        if not keyword:
            return assignments
        return [
            a
            for a in assignments
            if keyword in a.content.title
            or keyword in a.content.scenario
            or any(keyword in subject for subject in a.subjects)
        ]

    def save_submission(self, submission: Submission) -> None:
        current = self.store.get(SUBMISSIONS_KEY) or []
        payload = submission.model_dump(mode="json")
        for idx, item in enumerate(current):
            if item.get("id") == submission.id:
                current[idx] = payload
                break
        else:
            current.append(payload)
        self.store.put(SUBMISSIONS_KEY, current)

    def list_submissions(self) -> List[Submission]:
        return self._load_submissions()

    def list_submissions_for(self, assignment_id: str) -> List[Submission]:
        return [s for s in self._load_submissions() if s.assignment_id == assignment_id]

    def get_submission(self, submission_id: str) -> Optional[Submission]:
        for submission in self._load_submissions():
            if submission.id == submission_id:
                return submission
        return None


class AssignmentService:
    """串联知识库、三个 Agent 与持久化。"""

    def __init__(
        self,
        repository: AssignmentRepository,
        generation_agent: GenerationAgent,
        evaluation_agent: EvaluationAgent,
        hint_agent: HintAgent,
    ) -> None:
        self.repository = repository
        self.generation_agent = generation_agent
        self.evaluation_agent = evaluation_agent
        self.hint_agent = hint_agent

    def _require_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.repository.get_assignment(assignment_id)
        if not assignment:
            raise AssignmentNotFoundError(f"作业不存在: {assignment_id}")
        return assignment

    async def create_assignment(
        self,
        topic: str,
        subjects: Iterable[str],
        difficulty: Union[Difficulty, str],
        assembler: KnowledgeBaseAssembler,
    ) -> Assignment:
        """用当前生效的知识库生成作业并保存；生成失败时不保存任何内容。"""

        subject_list = list(subjects)
        level = Difficulty(difficulty)
        content = await self.generation_agent.generate(
            topic, subject_list, level, assembler.active_corpus()
        )
        assignment = Assignment(
            id=str(uuid.uuid4()),
            topic=topic.strip(),
            subjects=subject_list,
            difficulty=level,
            content=content,
            created_at=datetime.now(timezone.utc),
            standards_ref=assembler.source_label(),
        )
        self.repository.save_assignment(assignment)
        logger.info(f"Saved assignment {assignment.id}: {content.title}")
        return assignment

    async def submit(
        self,
        assignment_id: str,
        content_text: str,
        image: Optional[str] = None,
        student_name: str = DEFAULT_STUDENT_NAME,
    ) -> Submission:
        """评估并保存提交；``EvaluationError`` 直接向上抛出，不保存提交。"""

        if not content_text.strip() and not image:
            raise ValueError("请填写答案或上传图片")
        assignment = self._require_assignment(assignment_id)

        evaluation = await self.evaluation_agent.evaluate(assignment.content, content_text, image)
        submission = Submission(
            id=str(uuid.uuid4()),
            assignment_id=assignment.id,
            student_name=student_name,
            content_text=content_text,
            image_url=image,
            ai_evaluation=evaluation,
            created_at=datetime.now(timezone.utc),
        )
        self.repository.save_submission(submission)
        return submission

    async def hint(self, assignment_id: str, draft: str) -> str:
        assignment = self._require_assignment(assignment_id)
        return await self.hint_agent.hint(assignment.content, draft)
