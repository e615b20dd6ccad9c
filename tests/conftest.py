import pathlib, stat
import pytest

@pytest.fixture
def fake_program(tmp_path: pathlib.Path):
  """Write an executable shell script that stands in for mkfs.btrfs"""
  def _write(body: str, name: str = 'mkfs.btrfs') -> pathlib.Path:
    script = tmp_path / name
    script.write_text(f"#!/bin/sh\n{body}\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script
  return _write

@pytest.fixture
def echo_program(fake_program) -> pathlib.Path:
  """A stand in that prints each argument it receives on its own line"""
  return fake_program('printf "%s\\n" "$@"')
