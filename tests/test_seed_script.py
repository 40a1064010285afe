import importlib.util
from pathlib import Path

from pbl_architect.services.knowledge import CUSTOM_KB_KEY
from pbl_architect.utils.storage import InMemoryStore

SCRIPT = Path(__file__).parent.parent / "scripts" / "seed_knowledge_base.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("seed_knowledge_base", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_seed_promotes_parsed_files(tmp_path: Path, capsys) -> None:
    (tmp_path / "a_notes.txt").write_text("碳中和", encoding="utf-8")
    (tmp_path / "b_broken.pdf").write_bytes(b"not a pdf")
    (tmp_path / "c_plan.md").write_text("城市规划", encoding="utf-8")
    store = InMemoryStore()

    record = _load_script().seed(tmp_path, store)

    assert record.source_label == "a_notes.txt, c_plan.md"
    assert store.get(CUSTOM_KB_KEY)["content"] == "FILE: a_notes.txt\n碳中和\n\nFILE: c_plan.md\n城市规划"
    out = capsys.readouterr().out
    assert "成功: 2, 失败: 1" in out
    assert "✗" in out


def test_seed_without_files_writes_nothing(tmp_path: Path) -> None:
    store = InMemoryStore()

    assert _load_script().seed(tmp_path / "missing", store) is None
    assert store.get(CUSTOM_KB_KEY) is None
