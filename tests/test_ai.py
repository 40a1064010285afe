import asyncio

import pytest
from langchain_core.messages import AIMessage

from pbl_architect.config import Settings
from pbl_architect.models.enums import Difficulty
from pbl_architect.schemas.contracts import ASSIGNMENT_RESPONSE_SCHEMA
from pbl_architect.services.agents import GenerationAgent, GenerationError
from pbl_architect.services.ai import (
    BackendNotConfiguredError,
    GeminiBackend,
    ImagePart,
    build_content,
    message_text,
)


@pytest.fixture
def configured_settings():
    return Settings(_env_file=None, gemini_api_key="test-key")


def test_build_content_plain_prompt_is_passed_through() -> None:
    assert build_content("只有文字") == "只有文字"


def test_build_content_maps_text_and_image_parts() -> None:
    content = build_content(["题目与答案", ImagePart(mime_type="image/png", data="QUJD")])

    assert content == [
        {"type": "text", "text": "题目与答案"},
        {"type": "image_url", "image_url": "data:image/png;base64,QUJD"},
    ]


def test_message_text_joins_text_items_only() -> None:
    message = AIMessage(
        content=[
            {"type": "text", "text": "想一想"},
            "压强",
            {"type": "image_url", "image_url": "data:image/png;base64,QUJD"},
            {"type": "text", "text": "的变化"},
        ]
    )

    assert message_text(message) == "想一想压强的变化"
    assert message_text(AIMessage(content="纯文本")) == "纯文本"


def test_call_without_api_key_is_not_configured(settings) -> None:
    backend = GeminiBackend(settings)

    assert backend.is_available is False
    with pytest.raises(BackendNotConfiguredError):
        asyncio.run(backend.call("你好"))


def test_agent_reports_missing_api_key_as_generation_error(settings) -> None:
    agent = GenerationAgent(GeminiBackend(settings), settings)

    with pytest.raises(GenerationError) as excinfo:
        asyncio.run(agent.generate("火星殖民计划", ["物理"], Difficulty.BASIC))

    assert isinstance(excinfo.value.__cause__, BackendNotConfiguredError)


def test_schema_enables_json_output(configured_settings) -> None:
    backend = GeminiBackend(configured_settings)

    chat = backend._get_chat(ASSIGNMENT_RESPONSE_SCHEMA, 0.7)

    assert chat.response_mime_type == "application/json"
    assert chat.response_schema == ASSIGNMENT_RESPONSE_SCHEMA
    assert chat.temperature == 0.7
    assert chat.max_retries == 0


def test_plain_chat_has_no_response_schema(configured_settings) -> None:
    chat = GeminiBackend(configured_settings)._get_chat(None, 0.7)

    assert chat.response_schema is None
    assert chat.response_mime_type in (None, "text/plain")


def test_one_client_per_schema_and_temperature(configured_settings) -> None:
    backend = GeminiBackend(configured_settings)

    first = backend._get_chat(ASSIGNMENT_RESPONSE_SCHEMA, 0.7)

    assert backend._get_chat(dict(ASSIGNMENT_RESPONSE_SCHEMA), 0.7) is first
    assert backend._get_chat(ASSIGNMENT_RESPONSE_SCHEMA, 0.5) is not first
    assert backend._get_chat(None, 0.7) is not first
