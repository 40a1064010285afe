"""Agent Service：作业生成（Agent A）、提交评估（Agent B）与学习提示（Agent C）。

A、B 两个 Agent 通过结构化输出约束调用后端，拿到原始文本后再用
``schemas.contracts`` 中的模型做校验；校验不通过一律视为失败，不返回
猜测或部分结果。Agent C 不做结构约束，失败时返回固定的兜底文案。
"""

from __future__ import annotations

import base64
import json
import logging
import re
from typing import Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from pbl_architect.config import Settings
from pbl_architect.models.enums import Difficulty
from pbl_architect.schemas.contracts import (
    ASSIGNMENT_RESPONSE_SCHEMA,
    EVALUATION_RESPONSE_SCHEMA,
    AIEvaluation,
    AssignmentContent,
)
from pbl_architect.services.ai import BackendError, GenerationBackend, ImagePart, Part

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

HINT_FALLBACK_MESSAGE = "AI 助教暂时掉线了，请稍后再试。"
HINT_EMPTY_MESSAGE = "请再读一遍题目背景，尝试将不同学科的知识联系起来思考。"

_LOCALE_LABELS = {
    "zh-CN": "简体中文（zh-CN）",
    "zh-TW": "繁體中文（zh-TW）",
    "en-US": "English (en-US)",
}

_DIFFICULTY_GUIDANCE = {
    Difficulty.BASIC: "基础：聚焦核心概念与基本事实，任务以理解、识记和建立学科间的初步联系为主。",
    Difficulty.CHALLENGE: "挑战：设置开放式探究任务，要求学生提出假设、给出证据并论证自己的方案。",
}

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class AgentError(RuntimeError):
    """Agent 调用失败的基类。"""


class GenerationError(AgentError):
    """作业生成失败：后端报错、空响应或输出不符合结构契约。"""


class EvaluationError(AgentError):
    """提交评估失败：后端报错、空响应或输出不符合结构契约。"""


class HintError(AgentError):
    """提示生成失败，只在 HintAgent 内部使用并被兜底文案替换。"""


def _locale_label(locale: str) -> str:
    return _LOCALE_LABELS.get(locale, locale)


def _strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    match = _CODE_FENCE.match(cleaned)
    return match.group(1) if match else cleaned


def parse_structured(raw: Optional[str], schema: Type[T], error_cls: Type[AgentError]) -> T:
    """把后端返回的原始文本校验为 ``schema``，任何不符都抛出 ``error_cls``。"""

    if not raw or not raw.strip():
        raise error_cls("AI 未返回任何内容")
    try:
        return schema.model_validate_json(_strip_code_fence(raw))
    except ValidationError as exc:
        raise error_cls(f"AI 输出不符合 {schema.__name__} 结构: {exc.error_count()} 处错误") from exc


def _normalize_subjects(subjects: Iterable[str]) -> List[str]:
    ordered: List[str] = []
    for subject in subjects:
        cleaned = subject.strip()
        if cleaned and cleaned not in ordered:
            ordered.append(cleaned)
    return ordered


def to_image_part(image: Union[bytes, str], mime_type: str = "image/jpeg") -> ImagePart:
    """接受原始字节、base64 字符串或 data URL。"""

    if isinstance(image, bytes):
        return ImagePart(mime_type=mime_type, data=base64.b64encode(image).decode("ascii"))
    if image.startswith("data:") and "," in image:
        header, data = image.split(",", 1)
        declared = header[len("data:"):].split(";")[0]
        return ImagePart(mime_type=declared or mime_type, data=data)
    return ImagePart(mime_type=mime_type, data=image)


class GenerationAgent:
    """Agent A：作业架构师。"""

    def __init__(self, backend: GenerationBackend, settings: Settings) -> None:
        self.backend = backend
        self.settings = settings

    def build_prompt(
        self, topic: str, subjects: List[str], difficulty: Difficulty, corpus: str
    ) -> str:
        prompt = (
            "角色：你是一名擅长现象式学习（PBL）的教学设计专家。\n"
            "任务：设计一份跨学科作业。\n\n"
            "输入：\n"
            f"- 主题：{topic}\n"
            f"- 学科：{'、'.join(subjects)}\n"
            f"- 难度：{difficulty.value}\n\n"
            "要求：\n"
            f"1. 语言：标题、情境、任务与评价要点必须全部使用{_locale_label(self.settings.output_locale)}。\n"
            "2. 深度融合：不要按学科逐条罗列问题，要构建一个必须同时运用所有所选学科知识才能解决的真实情境；"
            "每个学科至少在一个任务的 subject_focus 中出现。\n"
            f"3. 难度：{_DIFFICULTY_GUIDANCE[difficulty]}\n"
            "4. 任务 id 从 1 开始连续编号，不得重复。\n"
            "5. 输出：只返回严格符合给定 JSON Schema 的 JSON，不要附加任何说明。\n"
        )
        if corpus.strip():
            prompt += f"\n参考资料（课程标准与教师上传的资料，仅供参考）：\n{corpus}\n"
        return prompt

    async def generate(
        self,
        topic: str,
        subjects: Iterable[str],
        difficulty: Union[Difficulty, str],
        corpus: str = "",
    ) -> AssignmentContent:
        """生成作业内容，失败时抛出 ``GenerationError``，不返回部分结果。"""

        topic = topic.strip()
        subject_list = _normalize_subjects(subjects)
        if not topic:
            raise ValueError("请填写主题")
        if not subject_list:
            raise ValueError("请至少选择一个学科")
        level = Difficulty(difficulty)

        prompt = self.build_prompt(topic, subject_list, level, corpus)
        logger.info(f"Generating assignment: topic={topic} subjects={subject_list} difficulty={level.value}")
        try:
            raw = await self.backend.call(
                prompt,
                schema=ASSIGNMENT_RESPONSE_SCHEMA,
                temperature=self.settings.generation_temperature,
            )
        except BackendError as exc:
            raise GenerationError("作业生成服务调用失败") from exc

        content = parse_structured(raw, AssignmentContent, GenerationError)
        missing = [
            subject
            for subject in subject_list
            if not any(subject in task.subject_focus for task in content.tasks)
        ]
        if missing:
            raise GenerationError(f"生成的任务未覆盖学科: {'、'.join(missing)}")
        return content


class EvaluationAgent:
    """Agent B：评估导师。"""

    def __init__(self, backend: GenerationBackend, settings: Settings) -> None:
        self.backend = backend
        self.settings = settings

    def build_parts(
        self,
        assignment: AssignmentContent,
        submission_text: str,
        submission_image: Optional[Union[bytes, str]] = None,
    ) -> List[Part]:
        language = _locale_label(self.settings.output_locale)
        instructions = (
            "角色：你是一名既关注学业准确性、也关注学生心理成长的老师。\n\n"
            f"作业内容（JSON）：\n{assignment.model_dump_json()}\n\n"
            f"学生提交的文字答案：\n\"{submission_text}\"\n\n"
            "要求：\n"
            f"1. 语言：所有反馈、评语与总结必须使用{language}。\n"
            "2. 多模态：如果附带图片，把图片内容视为答案的一部分进行分析。\n"
            "3. 维度：accuracy（准确性）与 creativity（创造性）分别只能取 High、Medium、Low；"
            "effort_detected 独立于答案对错，只判断学生是否认真投入。\n"
            "4. 分数：score 为 0 到 100 之间的数字。\n"
            "5. 语气：作品较弱但能看出努力时，feedback_summary 使用鼓励式反馈；"
            "作品优秀时，使用挑战式反馈，提出更高层次的问题。\n"
            "6. detailed_comments 按重要性给出具体、可操作的逐条评语。\n"
            "7. 输出：只返回严格符合给定 JSON Schema 的 JSON。\n"
        )
        parts: List[Part] = [instructions]
        if submission_image:
            parts.append(to_image_part(submission_image))
        return parts

    async def evaluate(
        self,
        assignment: AssignmentContent,
        submission_text: str,
        submission_image: Optional[Union[bytes, str]] = None,
    ) -> AIEvaluation:
        """评估一次提交，失败时抛出 ``EvaluationError``，绝不返回默认分数。"""

        parts = self.build_parts(assignment, submission_text, submission_image)
        try:
            raw = await self.backend.call(
                parts,
                schema=EVALUATION_RESPONSE_SCHEMA,
                temperature=self.settings.evaluation_temperature,
            )
        except BackendError as exc:
            raise EvaluationError("评估服务调用失败") from exc
        evaluation = parse_structured(raw, AIEvaluation, EvaluationError)
        logger.info(
            f"Evaluated submission for '{assignment.title}': score={evaluation.score} "
            f"accuracy={evaluation.dimensions.accuracy.value}"
        )
        return evaluation


class HintAgent:
    """Agent C：AI 助教，只给思路不给答案。"""

    def __init__(self, backend: GenerationBackend, settings: Settings) -> None:
        self.backend = backend
        self.settings = settings

    def build_prompt(self, assignment: AssignmentContent, current_draft: str) -> str:
        tasks = json.dumps(
            [task.model_dump() for task in assignment.tasks], ensure_ascii=False
        )
        return (
            "角色：你是一名辅导学生完成跨学科作业的助教。\n\n"
            "作业背景：\n"
            f"标题：{assignment.title}\n"
            f"情境：{assignment.scenario}\n"
            f"任务：{tasks}\n\n"
            f"学生当前的草稿：\"{current_draft}\"\n\n"
            f"任务：用{_locale_label(self.settings.output_locale)}给出一条简短提示"
            f"（不超过 {self.settings.hint_max_words} 字）。\n"
            "约束：不要直接给出答案，引导学生思考学科之间、或与情境之间的联系。\n"
            "语气：鼓励式、苏格拉底式提问。\n"
        )

    async def _request_hint(self, assignment: AssignmentContent, current_draft: str) -> str:
        try:
            return await self.backend.call(
                self.build_prompt(assignment, current_draft),
                temperature=self.settings.hint_temperature,
            )
        except Exception as exc:  # noqa: BLE001 - 任何后端问题都按提示不可用处理
            raise HintError("提示生成失败") from exc

    async def hint(self, assignment: AssignmentContent, current_draft: str) -> str:
        """返回提示文本；后端失败时返回兜底文案而不是抛出异常。"""

        try:
            text = await self._request_hint(assignment, current_draft)
        except HintError as exc:
            logger.warning(f"Hint unavailable, using fallback: {exc.__cause__!r}")
            return HINT_FALLBACK_MESSAGE
        return text.strip() or HINT_EMPTY_MESSAGE
