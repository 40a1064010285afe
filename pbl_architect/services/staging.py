"""暂存区：负责上传文件从待解析到解析成功/失败的完整生命周期。

文件严格按提交顺序逐个解析，任一时刻最多只有一个文件处于 ``parsing``。
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Dict, Iterable, List, Optional, Sequence

from pbl_architect.models.enums import StagingStatus
from pbl_architect.schemas.records import SourceFile, StagedFile
from pbl_architect.utils.text_processing import (
    DEFAULT_PDF_MAX_PAGES,
    ParseError,
    parse_document,
)

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS = {
    StagingStatus.PENDING: {StagingStatus.PARSING},
    StagingStatus.PARSING: {StagingStatus.SUCCESS, StagingStatus.ERROR},
    StagingStatus.SUCCESS: set(),
    StagingStatus.ERROR: set(),
}


class InvalidTransitionError(ValueError):
    """暂存文件的状态只能单向流转。"""


class FileStagingQueue:
    """一次编辑会话内的文件工作集。"""

    def __init__(self, max_pdf_pages: int = DEFAULT_PDF_MAX_PAGES) -> None:
        self.max_pdf_pages = max_pdf_pages
        self._entries: Dict[str, StagedFile] = {}
        self._lock = asyncio.Lock()

    def stage(self, files: Sequence[SourceFile]) -> List[StagedFile]:
        """追加文件到暂存区，初始状态为 ``pending``。"""

        staged: List[StagedFile] = []
        for source in files:
            entry = StagedFile(id=uuid.uuid4().hex, source=source.model_copy())
            self._entries[entry.id] = entry
            staged.append(entry)
            logger.debug(f"Staged {source.filename} as {entry.id}")
        return staged

    def list_all(self) -> List[StagedFile]:
        return list(self._entries.values())

    def get(self, file_id: str) -> Optional[StagedFile]:
        return self._entries.get(file_id)

    def successes(self) -> List[StagedFile]:
        return [e for e in self._entries.values() if e.status == StagingStatus.SUCCESS]

    def remove(self, file_id: str) -> bool:
        """任意状态都可移除；不会取消正在进行的解析。"""

        return self._entries.pop(file_id, None) is not None

    def discard(self, file_ids: Iterable[str]) -> None:
        for file_id in file_ids:
            self._entries.pop(file_id, None)

    async def process(self) -> List[StagedFile]:
        """把所有 ``pending`` 文件逐个解析到终态，返回本轮处理过且仍在暂存区的文件。"""

        async with self._lock:
            pending = [e for e in self._entries.values() if e.status == StagingStatus.PENDING]
            processed: List[StagedFile] = []
            for entry in pending:
                if entry.id not in self._entries:
                    continue
                await self._process_one(entry)
                if entry.id in self._entries:
                    processed.append(entry)
            return processed

    async def _process_one(self, entry: StagedFile) -> None:
        self._transition(entry, StagingStatus.PARSING)
        source = entry.source
        try:
            text = await asyncio.to_thread(
                parse_document,
                source.data,
                source.filename,
                source.content_type,
                self.max_pdf_pages,
            )
        except ParseError as exc:
            self._fail(entry, exc.message)
            return
        except Exception as exc:  # noqa: BLE001 - 单个文件失败不影响同批次其他文件
            self._fail(entry, f"{source.filename} 解析失败：{exc}")
            return

        if entry.id not in self._entries:
            logger.debug(f"Discarding parse result for removed file {entry.id}")
            return
        entry.extracted_text = text
        self._transition(entry, StagingStatus.SUCCESS)

    def _fail(self, entry: StagedFile, message: str) -> None:
        if entry.id not in self._entries:
            logger.debug(f"Discarding parse failure for removed file {entry.id}")
            return
        logger.warning(f"Failed to parse {entry.filename}: {message}")
        entry.error_message = message
        self._transition(entry, StagingStatus.ERROR)

    def _transition(self, entry: StagedFile, target: StagingStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[entry.status]:
            raise InvalidTransitionError(
                f"{entry.id}: {entry.status.value} -> {target.value} is not allowed"
            )
        logger.debug(f"{entry.filename}: {entry.status.value} -> {target.value}")
        entry.status = target
        if target.is_terminal:
            # 原始字节只在解析时需要
            entry.source.data = b""
