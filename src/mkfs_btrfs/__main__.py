"""

Command line front end for mkfs.btrfs

  python -m mkfs_btrfs TARGET [NAME=VALUE ...] [FLAG ...] [--dry-run]

    NAME=VALUE  Set a valued option, ex. `label=ROOT`, `features=mixed-bg,quota`, `byte-count=512MiB`
    FLAG        Toggle a flag, ex. `force`, `mixed`, `no-discard`
    --dry-run   Print the argument vector instead of running mkfs.btrfs

"""
import sys, orjson
from loguru import logger

### Local Imports
from . import config, utils
from .formatter import Formatter, SpawnError
from .options import OptionsBuilder, ValidationError
###

FLAG_OPTS = ('force', 'mixed', 'no_discard', 'quiet', 'shrink', 'verbose')
VALUED_OPTS = (
  'byte_count', 'checksum', 'data', 'device_uuid', 'features', 'label',
  'metadata', 'nodesize', 'rootdir', 'runtime_features', 'sectorsize', 'uuid',
)
INT_OPTS = ('nodesize', 'sectorsize')
LIST_OPTS = ('features', 'runtime_features')
TRUE_VALUES = ('1', 'true', 'yes', 'on')
FALSE_VALUES = ('0', 'false', 'no', 'off')

def _opt_name(arg: str) -> str:
  return arg.replace('-', '_').lower()

def parse_argv(argv: list[str]) -> tuple[str, dict[str, str], list[str], bool]:
  """Split the command line into the target, the valued options, the flags & whether this is a dry run"""
  kv: dict[str, str] = {}
  flags: list[str] = []
  targets: list[str] = []
  dry_run = False
  for arg in argv:
    if arg == '--dry-run': dry_run = True
    elif arg.startswith('-'): raise CLIError(f"Unknown Argument: {arg}")
    elif '=' in arg:
      k, v = arg.split('=', 1)
      kv[_opt_name(k)] = v
    elif _opt_name(arg) in FLAG_OPTS: flags.append(_opt_name(arg))
    else: targets.append(arg)
  if len(targets) != 1: raise CLIError(f"Expected exactly one Target, got {len(targets)}: {targets}")
  return targets[0], kv, flags, dry_run

def assemble(kv: dict[str, str], flags: list[str]) -> OptionsBuilder:
  """Apply the parsed command line options onto a fresh OptionsBuilder"""
  builder = Formatter.options()
  for name in flags: builder = getattr(builder, name)()
  for name, value in kv.items():
    if name in FLAG_OPTS:
      if value.lower() in TRUE_VALUES: builder = getattr(builder, name)()
      elif value.lower() not in FALSE_VALUES: raise CLIError(f"Invalid boolean for `{name}`: {value}")
    elif name in INT_OPTS:
      try: size = int(value)
      except ValueError as e: raise CLIError(f"Invalid integer for `{name}`: {value}") from e
      builder = getattr(builder, name)(size)
    elif name in LIST_OPTS: builder = getattr(builder, name)([v for v in value.split(',') if v])
    elif name in VALUED_OPTS: builder = getattr(builder, name)(value)
    else: raise CLIError(f"Unknown Option: {name}")
  return builder

def write_to_stdout(data: bytes):
  buf_len = len(data)
  bytes_written = 0
  while bytes_written < buf_len: bytes_written += sys.stdout.buffer.write(data[bytes_written:])
  sys.stdout.buffer.flush()

def main(argv: list[str] | None = None) -> int:
  if argv is None: argv = sys.argv[1:]
  target, kv, flags, dry_run = parse_argv(argv)
  formatter = Formatter(assemble(kv, flags).build())

  if dry_run:
    write_to_stdout(orjson.dumps(formatter.args(target), option=orjson.OPT_APPEND_NEWLINE))
    return 0

  logger.info(f"Formatting `{target}` with `{formatter.program}`")
  result = formatter.format(target)
  write_to_stdout(orjson.dumps(result, default=utils.json_default, option=orjson.OPT_INDENT_2 | orjson.OPT_APPEND_NEWLINE))
  if result['status'] != 0:
    logger.error(f"Format Failed: `{formatter.program}` exited with status {result['status']}")
    return 1
  logger.success(f"Formatted `{target}`")
  return 0

class CLIError(RuntimeError): ...

def _cli_error(e: Exception):
  logger.error(e)
  return 2
def _spawn_error(e: Exception):
  logger.critical(e)
  return 3
def _unhandled_error(e: Exception):
  logger.opt(exception=e).critical('Unhandled exception')
  return 3
def _interrupt_error():
  logger.warning("Interrupt Detected, Exiting...")
  return 4

def run(argv: list[str] | None = None) -> int:
  _rc = 255
  config.setup_logging()
  try: _rc = main(argv)
  except KeyboardInterrupt: _rc = _interrupt_error()
  except (CLIError, ValidationError) as e: _rc = _cli_error(e)
  except SpawnError as e: _rc = _spawn_error(e)
  except Exception as e: _rc = _unhandled_error(e)
  finally: config.finalize()
  return _rc

if __name__ == '__main__':
  sys.exit(run())
