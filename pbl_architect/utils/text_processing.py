"""文档解析工具：把 PDF、Word 与纯文本统一抽取为纯文本。"""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

from docx import Document as DocxDocument
from PyPDF2 import PdfReader

logger = logging.getLogger(__name__)

DEFAULT_PDF_MAX_PAGES = 30

PDF_MIME_TYPES = {"application/pdf"}
DOCX_MIME_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

FORMAT_PDF = "pdf"
FORMAT_DOCX = "docx"
FORMAT_TEXT = "text"


class ParseError(ValueError):
    """单个文件解析失败，携带面向用户的中文说明。"""

    def __init__(self, filename: str, message: str) -> None:
        super().__init__(message)
        self.filename = filename
        self.message = message


def detect_format(filename: str, content_type: Optional[str] = None) -> str:
    """按 MIME 优先、后缀其次判断格式；无法识别的一律按纯文本处理。"""

    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in PDF_MIME_TYPES:
        return FORMAT_PDF
    if mime in DOCX_MIME_TYPES:
        return FORMAT_DOCX

    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        return FORMAT_PDF
    if suffix == ".docx":
        return FORMAT_DOCX
    return FORMAT_TEXT


def parse_document(
    content: bytes,
    filename: str,
    content_type: Optional[str] = None,
    max_pdf_pages: int = DEFAULT_PDF_MAX_PAGES,
) -> str:
    """根据声明的格式抽取文本，失败时抛出 ``ParseError``。"""

    fmt = detect_format(filename, content_type)
    if fmt == FORMAT_PDF:
        return _parse_pdf(content, filename, max_pdf_pages)
    if fmt == FORMAT_DOCX:
        return _parse_docx(content, filename)
    return _parse_plain(content)


def _parse_pdf(content: bytes, filename: str, max_pages: int) -> str:
    try:
        reader = PdfReader(BytesIO(content))
        total = len(reader.pages)
        texts = [
            reader.pages[idx].extract_text() or "" for idx in range(min(total, max_pages))
        ]
    except Exception as exc:  # noqa: BLE001 - PyPDF2 抛出的异常类型不统一
        raise ParseError(filename, f"PDF 解析失败：{filename} 可能已损坏或已加密（{exc}）") from exc

    if total > max_pages:
        logger.info(f"{filename}: {total} pages, only the first {max_pages} were extracted")
    return "\n".join(texts)


def _parse_docx(content: bytes, filename: str) -> str:
    try:
        doc = DocxDocument(BytesIO(content))
    except Exception as exc:  # noqa: BLE001 - python-docx 对坏文件抛出多种异常
        raise ParseError(
            filename, f"Word 文档解析失败：{filename} 不是有效的 .docx 文件（{exc}）"
        ) from exc
    return "\n".join(p.text for p in doc.paragraphs)


def _parse_plain(content: bytes) -> str:
    # 非 UTF-8 内容解码为替换字符，不视为错误
    return content.decode("utf-8", errors="replace")
