from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pandoc_exporter.api import create_app


def test_disabled_api_refuses_to_start(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[runtime]\nenable_local_api = false\n", encoding="utf-8")
    with pytest.raises(RuntimeError):
        create_app(path)
    assert create_app(path, require_enabled=False) is not None


def test_health(config_file: Path) -> None:
    client = TestClient(create_app(config_file))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_compile(config_file: Path) -> None:
    client = TestClient(create_app(config_file))
    markdown = "---\ntitle: T\npandoc-toc: true\npandoc-pdf-engine: nope\n---\nBody\n"
    response = client.post("/compile", json={"markdown": markdown})
    assert response.status_code == 200
    payload = response.json()
    assert payload["arguments"] == ["--toc"]
    assert payload["metadata"] == {"title": "T"}
    assert len(payload["diagnostics"]) == 1


def test_compile_rejects_broken_frontmatter(config_file: Path) -> None:
    client = TestClient(create_app(config_file))
    response = client.post("/compile", json={"markdown": "---\na: [\n---\n"})
    assert response.status_code == 400
    assert response.json()["detail"] == "FRONTMATTER"


def test_export_html(tmp_path: Path, config_file: Path) -> None:
    (tmp_path / "Note.md").write_text("# Hi\n", encoding="utf-8")
    client = TestClient(create_app(config_file))
    response = client.post("/export", json={"path": "Note.md", "format": "html"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "succeeded"
    assert Path(payload["output_path"]).read_text(encoding="utf-8").count("<h1>Hi</h1>") == 1


def test_export_errors(tmp_path: Path, config_file: Path) -> None:
    client = TestClient(create_app(config_file))
    assert client.post("/export", json={"path": "Missing.md", "format": "html"}).status_code == 404
    (tmp_path / "Note.md").write_text("x", encoding="utf-8")
    response = client.post("/export", json={"path": "Note.md", "format": "nope"})
    assert response.status_code == 400
    assert response.json()["detail"] == "UNKNOWN_FORMAT"
