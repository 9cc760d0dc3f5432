from pathlib import Path

import pytest


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        f"""
[vault]
root = "{tmp_path.as_posix()}"

[export]
extra_arguments = "--standalone"

[runtime]
log_dir = "{(tmp_path / 'logs').as_posix()}"
enable_local_api = true
""",
        encoding="utf-8",
    )
    return path
