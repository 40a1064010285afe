"""知识库组装：合并默认知识库、持久化的自定义知识库与暂存区中的临时资料。"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from pydantic import BaseModel

from pbl_architect.models.enums import KnowledgeBaseMode, StagingStatus
from pbl_architect.schemas.records import CustomKnowledgeBase, StagedFile
from pbl_architect.services.default_corpus import DEFAULT_CORPUS, DEFAULT_CORPUS_LABEL
from pbl_architect.services.staging import FileStagingQueue
from pbl_architect.utils.storage import KeyValueStore

logger = logging.getLogger(__name__)

CUSTOM_KB_KEY = "custom_knowledge_base"
SUPPLEMENT_HEADER = "=== 补充资料（本次上传，尚未入库） ==="


class KnowledgeBaseState(BaseModel):
    """当前生效的知识库模式及已持久化的自定义知识库。"""

    mode: KnowledgeBaseMode = KnowledgeBaseMode.DEFAULT
    custom_record: Optional[CustomKnowledgeBase] = None

    @classmethod
    def load(cls, store: KeyValueStore) -> "KnowledgeBaseState":
        raw = store.get(CUSTOM_KB_KEY)
        if not raw:
            return cls()
        return cls(
            mode=KnowledgeBaseMode.CUSTOM,
            custom_record=CustomKnowledgeBase.model_validate(raw),
        )


class KnowledgeBaseAssembler:
    """唯一负责写入自定义知识库的组件。"""

    def __init__(
        self,
        store: KeyValueStore,
        staging: FileStagingQueue,
        state: KnowledgeBaseState,
        default_corpus: str = DEFAULT_CORPUS,
    ) -> None:
        self.store = store
        self.staging = staging
        self.state = state
        self.default_corpus = default_corpus

    def base_corpus(self) -> str:
        if self.state.mode == KnowledgeBaseMode.CUSTOM and self.state.custom_record:
            return self.state.custom_record.content
        return self.default_corpus

    def source_label(self) -> str:
        if self.state.mode == KnowledgeBaseMode.CUSTOM and self.state.custom_record:
            return self.state.custom_record.source_label
        return DEFAULT_CORPUS_LABEL

    def active_corpus(self) -> str:
        """基础知识库在前，暂存区中解析成功的文件作为补充资料追加在后。"""

        base = self.base_corpus()
        staged = self.staging.successes()
        if not staged:
            return base
        blocks = [
            f"--- 来源文件: {entry.filename} ---\n{entry.extracted_text or ''}"
            for entry in staged
        ]
        return f"{base}\n\n{SUPPLEMENT_HEADER}\n" + "\n\n".join(blocks)

    def promote(self, selection: Iterable[str]) -> CustomKnowledgeBase:
        """把选中的暂存文件写入自定义知识库并从暂存区移除。

        写入失败（``StorageCapacityError``）时暂存区与状态均保持不变。
        """

        entries = self._resolve_selection(selection)
        content = "\n\n".join(
            f"FILE: {entry.filename}\n{entry.extracted_text or ''}" for entry in entries
        )
        record = CustomKnowledgeBase(
            content=content,
            source_label=", ".join(entry.filename for entry in entries),
            updated_at=datetime.now(timezone.utc),
        )
        self.store.put(CUSTOM_KB_KEY, record.model_dump(mode="json"))

        self.state.mode = KnowledgeBaseMode.CUSTOM
        self.state.custom_record = record
        self.staging.discard(entry.id for entry in entries)
        logger.info(
            f"Promoted {len(entries)} file(s) into the custom knowledge base: {record.source_label}"
        )
        return record

    def reset(self) -> None:
        """恢复默认知识库并删除自定义知识库。"""

        self.store.delete(CUSTOM_KB_KEY)
        self.state.mode = KnowledgeBaseMode.DEFAULT
        self.state.custom_record = None
        logger.info("Custom knowledge base discarded, using the default corpus")

    def use_default(self) -> None:
        self.state.mode = KnowledgeBaseMode.DEFAULT

    def use_custom(self) -> None:
        if self.state.custom_record is None:
            raise ValueError("尚未保存自定义知识库")
        self.state.mode = KnowledgeBaseMode.CUSTOM

    def _resolve_selection(self, selection: Iterable[str]) -> List[StagedFile]:
        wanted = set(selection)
        if not wanted:
            raise ValueError("请至少选择一个解析成功的文件")
        entries = [entry for entry in self.staging.list_all() if entry.id in wanted]
        found = {entry.id for entry in entries}
        missing = wanted - found
        if missing:
            raise ValueError(f"暂存区中不存在文件: {', '.join(sorted(missing))}")
        not_ready = [entry.filename for entry in entries if entry.status != StagingStatus.SUCCESS]
        if not_ready:
            raise ValueError(f"以下文件尚未解析成功: {', '.join(not_ready)}")
        return entries
