"""

Format a device or file as a Btrfs filesystem by invoking mkfs.btrfs (from btrfs-progs)

"""
from __future__ import annotations
import os, subprocess
from loguru import logger

### Local Imports
from . import config, schemas
from .options import Options, OptionsBuilder
###

class Formatter:
  """Formats anything mkfs.btrfs can format using a fixed set of validated options"""
  __slots__ = ('_options', '_program')

  def __init__(self, options: Options, program: str | None = None):
    if not isinstance(options, Options): raise TypeError(f"Expected built Options, got {type(options).__name__}; call `.build()` first")
    self._options = OptionsBuilder.from_options(options).build()
    self._program = program or config.program()

  def __repr__(self) -> str:
    return f"Formatter(program={self._program!r}, options={self._options!r})"

  @staticmethod
  def options() -> OptionsBuilder:
    """Start building the options to format with"""
    return OptionsBuilder()

  @property
  def program(self) -> str:
    return self._program

  def args(self, target: str | os.PathLike) -> list[str]:
    """The full argument vector that `format` will execute"""
    return [self._program, *self._options.to_args(), os.fsdecode(target)]

  def format(self, target: str | os.PathLike) -> schemas.Output:
    """Format the target with mkfs.btrfs

    The target is passed through as is; mkfs.btrfs decides if it can be formatted. A non-zero exit status is returned, not raised.

    Args:
      target (str | os.PathLike): The block device or file to format

    Returns:
      schemas.Output: The argument vector, exit status & captured stdout/stderr of the process

    Raises:
      SpawnError: The process could not be started
    """
    args = self.args(target)
    logger.debug(f"Running: {' '.join(args)}")
    try:
      proc: subprocess.CompletedProcess = subprocess.run(
        args,
        stdin=subprocess.DEVNULL, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
      )
    except (OSError, ValueError) as e: raise SpawnError(f"Failed to start `{self._program}`: {e}") from e
    if proc.returncode != 0: logger.warning(f"`{self._program}` exited with status {proc.returncode} formatting {args[-1]}")
    else: logger.debug(f"`{self._program}` formatted {args[-1]}")
    return {
      "args": args,
      "status": proc.returncode,
      "stdout": proc.stdout,
      "stderr": proc.stderr,
    }

class SpawnError(RuntimeError): ...
