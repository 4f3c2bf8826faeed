from pathlib import Path

import pytest


@pytest.fixture
def env_file(tmp_path: Path) -> Path:
    path = tmp_path / ".env"
    path.write_text("FOO=bar\n")
    return path
