import pathlib

import pytest


@pytest.fixture
def write_file(tmp_path: pathlib.Path):
    def _write(name: str, content: str) -> pathlib.Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, "utf-8")
        return path

    return _write
