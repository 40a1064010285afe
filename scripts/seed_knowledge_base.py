"""批量导入目录下的文档到自定义知识库。

此脚本直接使用暂存区与知识库组装器，绕过 FastAPI UploadFile。
"""
import asyncio
import sys
from pathlib import Path
from typing import Optional

# 添加项目根目录到 path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pbl_architect.config import configure_logging, get_settings
from pbl_architect.models.enums import StagingStatus
from pbl_architect.schemas.records import CustomKnowledgeBase, SourceFile
from pbl_architect.services.knowledge import KnowledgeBaseAssembler, KnowledgeBaseState
from pbl_architect.services.staging import FileStagingQueue
from pbl_architect.utils.storage import JsonFileStore, KeyValueStore

RAW_DIR = Path(__file__).parent.parent / "storage" / "raw" / "curriculum_standards"


def seed(
    directory: Path, store: KeyValueStore, max_pdf_pages: int = 30
) -> Optional[CustomKnowledgeBase]:
    print("=" * 50)
    print("批量导入自定义知识库")
    print("=" * 50)

    directory = Path(directory)
    files = sorted(p for p in directory.iterdir() if p.is_file()) if directory.is_dir() else []
    if not files:
        print(f"未找到文件！请检查目录: {directory}")
        return None

    print(f"\n发现 {len(files)} 个文档待导入\n")

    queue = FileStagingQueue(max_pdf_pages=max_pdf_pages)
    queue.stage([SourceFile(filename=p.name, data=p.read_bytes()) for p in files])
    asyncio.run(queue.process())

    for i, entry in enumerate(queue.list_all(), 1):
        if entry.status == StagingStatus.SUCCESS:
            print(f"[{i}/{len(files)}] {entry.filename}... ✓ {len(entry.extracted_text or '')} 字")
        else:
            print(f"[{i}/{len(files)}] {entry.filename}... ✗ {entry.error_message}")

    successes = queue.successes()
    print("\n" + "=" * 50)
    print(f"解析完成！成功: {len(successes)}, 失败: {len(files) - len(successes)}")
    print("=" * 50)
    if not successes:
        return None

    assembler = KnowledgeBaseAssembler(store, queue, KnowledgeBaseState.load(store))
    record = assembler.promote(entry.id for entry in successes)
    print(f"\n已写入知识库: {record.source_label}（{len(record.content)} 字）")
    return record


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level)
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else RAW_DIR
    seed(
        target,
        JsonFileStore(settings.storage_dir, settings.store_max_value_bytes),
        settings.pdf_max_pages,
    )
