import io
import os
import shutil
import subprocess
import sys

import pytest

from python_bootbundle.config import BootConfig
from python_bootbundle.footer import FOOTER_LEN, FOOTER_VALID, decode_footer
from python_bootbundle.stub import main, render_stub, write_stub

from conftest import REPO_ROOT, subprocess_env


posix_only = pytest.mark.skipif(
    os.name == "nt" or shutil.which("sh") is None,
    reason="stub is a POSIX shell launcher",
)


def test_render_stub():
    text = render_stub(python="/opt/py 3/bin/python")
    assert text.startswith("#!/bin/sh\n")
    assert text.endswith("\n")
    assert 'PYTHON_BOOTBUNDLE_SELF="$0"' in text
    assert "export PYTHON_BOOTBUNDLE_SELF" in text
    assert "exec '/opt/py 3/bin/python' -m python_bootbundle \"$@\"" in text


def test_write_stub_uses_configured_python(tmp_path):
    out = tmp_path / "bin" / "stub"
    cfg = BootConfig(temp_dir=None, python="/usr/bin/python3", verbose=False, quiet=False)
    write_stub(output_path=out, config=cfg)
    assert out.read_text(encoding="utf-8") == render_stub(python="/usr/bin/python3")


@posix_only
def test_write_stub_is_executable(tmp_path):
    out = tmp_path / "stub"
    write_stub(output_path=out)
    assert os.access(out, os.X_OK) is True


def test_stub_main(tmp_path, capsys):
    out = tmp_path / "stub"
    assert main([str(out)]) == 0
    assert out.is_file() is True
    assert "wrote stub" in capsys.readouterr().err


@posix_only
def test_end_to_end(tmp_path):
    stub = tmp_path / "bootbundle"
    write_stub(
        output_path=stub,
        config=BootConfig(temp_dir=None, python=sys.executable, verbose=False, quiet=False),
    )
    out = tmp_path / "out.bin"
    env = subprocess_env()

    r = subprocess.run(
        [str(stub), "--build", str(REPO_ROOT / "examples" / "hello" / "main.py"), str(out)],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )
    assert r.returncode == 0, r.stderr + r.stdout

    stub_bytes = stub.read_bytes()
    data = out.read_bytes()
    footer = decode_footer(io.BytesIO(data[-FOOTER_LEN:]))
    assert footer.kind == FOOTER_VALID
    assert len(data) == len(stub_bytes) + footer.payload_size + FOOTER_LEN
    assert data[: len(stub_bytes)] == stub_bytes

    r = subprocess.run([str(out)], capture_output=True, text=True, env=env, timeout=60)
    assert r.returncode == 0, r.stderr
    assert r.stdout == "2\n"

    r = subprocess.run([str(out), "a", "b"], capture_output=True, text=True, env=env, timeout=60)
    assert r.returncode == 0, r.stderr
    assert r.stdout == "2\na b\n"


@posix_only
def test_bare_stub_exits_with_usage(tmp_path):
    stub = tmp_path / "bootbundle"
    write_stub(
        output_path=stub,
        config=BootConfig(temp_dir=None, python=sys.executable, verbose=False, quiet=False),
    )

    r = subprocess.run([str(stub)], capture_output=True, text=True, env=subprocess_env(), timeout=60)

    assert r.returncode == 7
    assert "Usage to build: bootbundle --build SCRIPT OUTPUT" in r.stderr


@posix_only
def test_bundle_can_build_from_a_built_bundle(tmp_path, write_script):
    stub = tmp_path / "bootbundle"
    write_stub(
        output_path=stub,
        config=BootConfig(temp_dir=None, python=sys.executable, verbose=False, quiet=False),
    )
    env = subprocess_env()
    first = tmp_path / "first.bin"
    second = tmp_path / "second.bin"

    r = subprocess.run(
        [str(stub), "--build", str(write_script("print('first')\n", name="a.py")), str(first)],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )
    assert r.returncode == 0, r.stderr
    r = subprocess.run(
        [str(first), "--build", str(write_script("print('second')\n", name="b.py")), str(second)],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )
    assert r.returncode == 0, r.stderr

    r = subprocess.run([str(second)], capture_output=True, text=True, env=env, timeout=60)
    assert r.stdout == "second\n"
    assert second.read_bytes().startswith(first.read_bytes())


@posix_only
def test_bundle_argv0_is_the_bundle(tmp_path, write_script):
    stub = tmp_path / "bootbundle"
    write_stub(
        output_path=stub,
        config=BootConfig(temp_dir=None, python=sys.executable, verbose=False, quiet=False),
    )
    env = subprocess_env()
    out = tmp_path / "whoami"
    script = write_script("import sys\nprint(sys.argv[0])\nprint(__file__)\n", name="whoami.py")

    r = subprocess.run([str(stub), "--build", str(script), str(out)], capture_output=True, text=True, env=env, timeout=60)
    assert r.returncode == 0, r.stderr

    r = subprocess.run([str(out)], capture_output=True, text=True, env=env, timeout=60)
    assert r.returncode == 0, r.stderr
    assert r.stdout == f"{out.resolve()}\n{out.resolve()}\n"
