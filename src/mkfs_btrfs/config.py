"""

Runtime configuration sourced from the environment

  MKFS_BTRFS: The program to invoke; defaults to `mkfs.btrfs`
  LOG_LEVEL:  The log level of the command line sink; defaults to `INFO`

"""
import os, sys
from loguru import logger

DEFAULT_PROGRAM = 'mkfs.btrfs'
DEFAULT_LOG_LEVEL = 'INFO'

def load_from_env(name: str, default: str) -> str:
  """Read an environment variable, treating an empty value as unset"""
  val = os.environ.get(name)
  if not val: return default
  return val

def program() -> str:
  """The mkfs.btrfs executable to spawn, resolved through PATH"""
  return load_from_env('MKFS_BTRFS', DEFAULT_PROGRAM)

def log_level() -> str:
  return load_from_env('LOG_LEVEL', DEFAULT_LOG_LEVEL).upper()

def setup_logging():
  logger.remove()
  logger.add(sink=sys.stderr, level=log_level(), enqueue=True, colorize=True)

def finalize():
  logger.complete()
  sys.stderr.flush()
  sys.stdout.flush()
