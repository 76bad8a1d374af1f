import logging
import os
import pathlib
import sys

import pytest

from python_bootbundle.config import BootConfig
from python_bootbundle.selfpath import ENV_SELF


REPO_ROOT: pathlib.Path = pathlib.Path(__file__).resolve().parents[1]

FAKE_STUB: bytes = b"#!/bin/sh\n# fake stub for tests\n\x00\x01\x02\xff" * 50


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("PYTHON_BOOTBUNDLE_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delattr(sys, "frozen", raising=False)
    yield
    logging.getLogger("python_bootbundle").handlers.clear()


@pytest.fixture
def config(tmp_path) -> BootConfig:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return BootConfig(temp_dir=scratch, python=sys.executable, verbose=False, quiet=False)


@pytest.fixture
def fake_stub(tmp_path) -> pathlib.Path:
    path = tmp_path / "stub.bin"
    path.write_bytes(FAKE_STUB)
    return path


@pytest.fixture
def write_script(tmp_path):
    def _write(source: str, name: str = "script.py") -> pathlib.Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def as_stub(monkeypatch):
    """Pretend the process was started from the given launcher."""

    def _set(path: pathlib.Path) -> None:
        monkeypatch.setenv(ENV_SELF, str(path))

    return _set


def subprocess_env() -> dict[str, str]:
    env = {k: v for k, v in os.environ.items() if k.startswith("PYTHON_BOOTBUNDLE_") is False}
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = str(REPO_ROOT) if not existing else f"{REPO_ROOT}{os.pathsep}{existing}"
    return env
