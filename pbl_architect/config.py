"""应用配置管理。

使用 Pydantic Settings 统一读取环境变量（前缀 ``PBL_``），便于在本地/生产之间切换。
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """核心配置项。

    - ``gemini_api_key``：Gemini API Key，未配置时三个 Agent 均不可用。
    - ``storage_dir``：JSON 键值存储目录，保存作业、提交与自定义知识库。
    - ``store_max_value_bytes``：单个键允许写入的最大字节数，超出即视为存储容量不足。
    """

    gemini_api_key: Optional[str] = Field(default=None, description="Gemini API Key")
    gemini_model: str = Field(default="gemini-2.5-flash", description="生成模型名称")
    generation_temperature: float = Field(default=0.7, description="Agent A 采样温度")
    evaluation_temperature: float = Field(default=0.5, description="Agent B 采样温度")
    hint_temperature: float = Field(default=0.7, description="Agent C 采样温度")
    max_output_tokens: int = Field(default=8192, description="单次生成的最大输出 token")

    output_locale: str = Field(default="zh-CN", description="生成内容的目标语言")
    hint_max_words: int = Field(default=50, description="提示语的最大字数")
    pdf_max_pages: int = Field(default=30, description="PDF 最多解析的页数")

    storage_dir: Path = Field(default=Path("./storage"), description="键值存储目录")
    store_max_value_bytes: int = Field(
        default=5 * 1024 * 1024, description="单个键的写入上限（字节）"
    )
    log_level: str = Field(default="INFO", description="日志级别")

    model_config = {
        "env_prefix": "PBL_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """缓存后的全局配置实例。"""

    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """初始化根日志格式，重复调用不会叠加 handler。"""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
