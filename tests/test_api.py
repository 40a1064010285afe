import json

from fastapi.testclient import TestClient

from conftest import make_assignment_payload, make_evaluation_payload
from pbl_architect.services.agents import HINT_FALLBACK_MESSAGE
from pbl_architect.services.ai import BackendError
from pbl_architect.services.default_corpus import DEFAULT_CORPUS_LABEL


def _dumps(payload) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _upload(client: TestClient, session_id: str, *files):
    return client.post(
        f"/api/staging/{session_id}/files",
        files=[("files", (name, data, mime)) for name, data, mime in files],
    )


def _generate(client: TestClient, backend, **overrides):
    backend.queue(_dumps(make_assignment_payload()))
    payload = {"topic": "火星殖民计划", "subjects": ["物理", "生物"], "difficulty": "basic"}
    payload.update(overrides)
    return client.post("/api/assignments", json=payload)


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_presets(client: TestClient):
    data = client.get("/api/assignments/presets").json()
    assert "火星殖民计划" in data["topics"]
    assert "物理" in data["subjects"]


def test_upload_and_list_staged_files(client: TestClient):
    response = _upload(
        client,
        "s1",
        ("notes.txt", "碳中和".encode("utf-8"), "text/plain"),
        ("broken.pdf", b"not a pdf", "application/pdf"),
    )
    assert response.status_code == 200
    data = response.json()
    assert [item["filename"] for item in data] == ["notes.txt", "broken.pdf"]
    assert data[0]["status"] == "success"
    assert data[0]["preview"] == "碳中和"
    assert data[1]["status"] == "error"
    assert data[1]["error_message"]

    listed = client.get("/api/staging/s1/files").json()
    assert len(listed) == 2
    assert client.get("/api/staging/unknown/files").json() == []


def test_remove_staged_file(client: TestClient):
    file_id = _upload(client, "s1", ("notes.txt", b"abc", "text/plain")).json()[0]["id"]

    assert client.delete(f"/api/staging/s1/files/{file_id}").status_code == 200
    assert client.delete(f"/api/staging/s1/files/{file_id}").status_code == 404
    assert client.get("/api/staging/s1/files").json() == []


def test_staged_material_appears_in_corpus(client: TestClient):
    _upload(client, "s1", ("notes.txt", "碳中和".encode("utf-8"), "text/plain"))

    with_session = client.get("/api/knowledge/corpus", params={"session_id": "s1"}).json()
    without_session = client.get("/api/knowledge/corpus").json()

    assert "--- 来源文件: notes.txt ---\n碳中和" in with_session["corpus"]
    assert "notes.txt" not in without_session["corpus"]
    assert with_session["source_label"] == DEFAULT_CORPUS_LABEL


def test_promote_reset_flow(client: TestClient):
    file_id = _upload(client, "s1", ("notes.txt", "碳中和".encode("utf-8"), "text/plain")).json()[0]["id"]

    response = client.post("/api/knowledge/promote", json={"session_id": "s1", "file_ids": [file_id]})
    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "custom"
    assert data["source_label"] == "notes.txt"
    assert client.get("/api/staging/s1/files").json() == []
    assert "碳中和" in client.get("/api/knowledge/corpus").json()["corpus"]

    assert client.post("/api/knowledge/mode", json={"mode": "default"}).json()["mode"] == "default"
    assert client.post("/api/knowledge/mode", json={"mode": "custom"}).json()["source_label"] == "notes.txt"

    reset = client.post("/api/knowledge/reset").json()
    assert reset["mode"] == "default"
    assert reset["source_label"] == DEFAULT_CORPUS_LABEL
    assert client.post("/api/knowledge/mode", json={"mode": "custom"}).status_code == 400


def test_promote_errors(client: TestClient):
    bad = _upload(client, "s1", ("bad.docx", b"nope", None)).json()[0]["id"]

    unknown_session = client.post("/api/knowledge/promote", json={"session_id": "nope", "file_ids": ["x"]})
    assert unknown_session.status_code == 404
    not_parsed = client.post("/api/knowledge/promote", json={"session_id": "s1", "file_ids": [bad]})
    assert not_parsed.status_code == 400
    empty = client.post("/api/knowledge/promote", json={"session_id": "s1", "file_ids": []})
    assert empty.status_code == 422


def test_generate_assignment(client: TestClient, backend):
    _upload(client, "s1", ("notes.txt", "碳中和".encode("utf-8"), "text/plain"))

    response = _generate(client, backend, session_id="s1")

    assert response.status_code == 201
    data = response.json()
    assert data["content"]["title"] == "火星基地生存挑战"
    assert data["standards_ref"] == DEFAULT_CORPUS_LABEL
    assert "碳中和" in backend.calls[0]["parts"]

    assert client.get(f"/api/assignments/{data['id']}").json()["id"] == data["id"]
    assert [a["id"] for a in client.get("/api/assignments", params={"q": "火星"}).json()] == [data["id"]]


def test_generate_assignment_failure(client: TestClient, backend):
    backend.queue(BackendError("quota"))

    response = client.post(
        "/api/assignments", json={"topic": "火星殖民计划", "subjects": ["物理"]}
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "生成失败，请稍后重试。"
    assert client.get("/api/assignments").json() == []


def test_generate_rejects_blank_topic(client: TestClient, backend):
    response = client.post("/api/assignments", json={"topic": "  ", "subjects": ["物理"]})

    assert response.status_code == 400
    assert backend.calls == []


def test_submission_flow(client: TestClient, backend):
    assignment_id = _generate(client, backend).json()["id"]
    backend.queue(_dumps(make_evaluation_payload(score=88)))

    response = client.post(
        "/api/submissions",
        json={"assignment_id": assignment_id, "content_text": "建立温室并循环利用水资源"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["ai_evaluation"]["score"] == 88
    assert client.get(f"/api/submissions/{data['id']}").json()["id"] == data["id"]
    listed = client.get(f"/api/assignments/{assignment_id}/submissions").json()
    assert [s["id"] for s in listed] == [data["id"]]


def test_submission_evaluation_failure(client: TestClient, backend):
    assignment_id = _generate(client, backend).json()["id"]
    backend.queue("")

    response = client.post(
        "/api/submissions", json={"assignment_id": assignment_id, "content_text": "答案"}
    )

    assert response.status_code == 502
    assert response.json()["detail"] == "评估失败，请重试。"
    assert client.get(f"/api/assignments/{assignment_id}/submissions").json() == []


def test_submission_errors(client: TestClient, backend):
    assignment_id = _generate(client, backend).json()["id"]

    missing = client.post("/api/submissions", json={"assignment_id": "nope", "content_text": "答案"})
    empty = client.post("/api/submissions", json={"assignment_id": assignment_id})

    assert missing.status_code == 404
    assert empty.status_code == 400
    assert client.get("/api/submissions/nope").status_code == 404


def test_hint_fallback(client: TestClient, backend):
    assignment_id = _generate(client, backend).json()["id"]
    backend.queue(BackendError("offline"))

    response = client.post(f"/api/assignments/{assignment_id}/hint", json={"draft": "草稿"})

    assert response.status_code == 200
    assert response.json()["hint"] == HINT_FALLBACK_MESSAGE
    assert client.post("/api/assignments/nope/hint", json={}).status_code == 404
    assert client.get("/api/assignments/nope").status_code == 404
