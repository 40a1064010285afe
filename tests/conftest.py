import json
import os
import sys

import pytest

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from pbl_architect.config import Settings
from pbl_architect.dependencies import (
    StagingRegistry,
    get_backend,
    get_knowledge_state,
    get_staging_registry,
    get_store,
)
from pbl_architect.main import app
from pbl_architect.services.ai import BackendError
from pbl_architect.services.knowledge import KnowledgeBaseState
from pbl_architect.utils.storage import InMemoryStore


class FakeBackend:
    """按顺序返回预设响应的生成后端，响应为异常实例时直接抛出。"""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def call(self, parts, schema=None, temperature=None):
        self.calls.append({"parts": parts, "schema": schema, "temperature": temperature})
        if not self.responses:
            raise BackendError("no scripted response")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_assignment_payload(subjects=("物理", "生物"), task_ids=None) -> dict:
    task_ids = task_ids or list(range(1, len(subjects) + 2))
    focuses = list(subjects) + [" + ".join(subjects)]
    return {
        "title": "火星基地生存挑战",
        "scenario": "人类首批殖民者抵达火星，需要在低气压、强辐射的环境中建立可持续的生命支持系统。",
        "tasks": [
            {"id": task_id, "question": f"任务 {task_id}：分析基地面临的问题", "subject_focus": focus}
            for task_id, focus in zip(task_ids, focuses)
        ],
        "evaluation_criteria": {
            "knowledge_points": ["大气压强", "光合作用"],
            "core_competencies": ["科学思维", "探究实践"],
        },
    }


def make_evaluation_payload(score=82, accuracy="High", creativity="Medium") -> dict:
    return {
        "score": score,
        "feedback_summary": "思路清晰，可以进一步思考能量来源的可持续性。",
        "dimensions": {
            "accuracy": accuracy,
            "creativity": creativity,
            "effort_detected": True,
        },
        "detailed_comments": ["压强计算正确。", "可以补充植物在低光照下的生长数据。"],
    }


@pytest.fixture
def settings():
    return Settings(_env_file=None, gemini_api_key=None)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def assignment_json():
    return json.dumps(make_assignment_payload(), ensure_ascii=False)


@pytest.fixture
def evaluation_json():
    return json.dumps(make_evaluation_payload(), ensure_ascii=False)


@pytest.fixture(scope="function")
def client(store, backend):
    """
    Create a TestClient whose store, backend and staging sessions are isolated per test.
    """
    registry = StagingRegistry(max_pdf_pages=30)
    state = KnowledgeBaseState.load(store)

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_staging_registry] = lambda: registry
    app.dependency_overrides[get_knowledge_state] = lambda: state
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
