"""

Options for mkfs.btrfs

Options are assembled through an `OptionsBuilder`; every setter validates its value immediately & returns a new builder,
so a chain stops at the first `ValidationError`. Rules that span several options are only checked by `build()`.

See: https://btrfs.readthedocs.io/en/latest/mkfs.btrfs.html#options

"""
from __future__ import annotations
from typing import NamedTuple, Iterable
from loguru import logger
import os, re, uuid

### Local Imports
from . import schemas, utils
###

MAX_LABEL_BYTES = 256
MAX_NODESIZE = 16384
MIN_SECTORSIZE = 4096
MAX_SECTORSIZE = 65536
FEATURE_NAME_RE = re.compile(r'\^?[A-Za-z0-9][A-Za-z0-9_-]*')

FLAGS: dict[str, str] = {
  'byte_count': '--byte-count',
  'checksum': '--checksum',
  'data': '--data',
  'device_uuid': '--device-uuid',
  'features': '--features',
  'force': '--force',
  'label': '--label',
  'metadata': '--metadata',
  'mixed': '--mixed',
  'no_discard': '--nodiscard',
  'nodesize': '--nodesize',
  'quiet': '--quiet',
  'rootdir': '--rootdir',
  'runtime_features': '--runtime-features',
  'sectorsize': '--sectorsize',
  'shrink': '--shrink',
  'uuid': '--uuid',
  'verbose': '--verbose',
}
"""The mkfs.btrfs flag for each option"""

class Options(NamedTuple):
  """The validated, immutable set of options passed to mkfs.btrfs

  Field order is the rendering order of the argument vector.
  """
  byte_count: int | None = None
  checksum: str | None = None
  data: str | None = None
  device_uuid: str | None = None
  features: tuple[str, ...] | None = None
  force: bool = False
  label: str | None = None
  metadata: str | None = None
  mixed: bool = False
  no_discard: bool = False
  nodesize: int | None = None
  quiet: bool = False
  rootdir: str | None = None
  runtime_features: tuple[str, ...] | None = None
  sectorsize: int | None = None
  shrink: bool = False
  uuid: str | None = None
  verbose: bool = False

  def to_args(self) -> list[str]:
    """Render the options as mkfs.btrfs arguments, excluding the program & target"""
    args: list[str] = []
    for name, value in zip(self._fields, self):
      if value is None or value is False: continue
      flag = FLAGS[name]
      if value is True: args.append(flag)
      elif isinstance(value, tuple): args += [flag, ','.join(value)]
      else: args += [flag, str(value)]
    return args

  def conflicts(self) -> list[str]:
    """List every violated cross-option rule; an empty list means the options are consistent"""
    found: list[str] = []
    if self.quiet and self.verbose: found.append("`quiet` and `verbose` are mutually exclusive")
    if self.shrink and self.rootdir is None: found.append("`shrink` requires `rootdir`")
    if self.mixed and None not in (self.data, self.metadata) and self.data != self.metadata:
      found.append(f"`mixed` requires matching `data` & `metadata` profiles: {self.data} != {self.metadata}")
    if None not in (self.nodesize, self.sectorsize):
      if self.mixed and self.nodesize != self.sectorsize:
        found.append(f"`mixed` requires `nodesize` to equal `sectorsize`: {self.nodesize} != {self.sectorsize}")
      elif self.nodesize < self.sectorsize:
        found.append(f"`nodesize` cannot be smaller than `sectorsize`: {self.nodesize} < {self.sectorsize}")
    return found

class OptionsBuilder:
  """Accumulates mkfs.btrfs options one at a time; start one with `Formatter.options()`"""
  __slots__ = ('_opts',)

  def __init__(self):
    self._opts: dict[str, object] = {}

  def __repr__(self) -> str:
    return f"OptionsBuilder({', '.join(f'{k}={v!r}' for k, v in self._opts.items())})"

  def _set(self, name: str, value: object) -> OptionsBuilder:
    builder = OptionsBuilder()
    builder._opts = self._opts | { name: value }
    return builder

  @classmethod
  def from_options(cls, opts: Options) -> OptionsBuilder:
    """Replay every set field of `opts` through its setter, so values that never went through `build()` are checked"""
    builder = cls()
    for name, value in zip(opts._fields, opts):
      if value is None or value is Options._field_defaults[name]: continue
      if Options._field_defaults[name] is False:
        if value is not True: raise ValidationError(f"Flag `{name}` must be True or False: {value!r}")
        builder = getattr(builder, name)()
      else: builder = getattr(builder, name)(value)
    return builder

  def byte_count(self, size: int | str) -> OptionsBuilder:
    """Specify the size of each device, as seen by the filesystem.

    Args:
      size (int | str): The size in bytes, or a human readable size such as `512MiB`
    """
    if isinstance(size, str):
      try: size = utils.convert_to_bytes(size)
      except ValueError as e: raise ValidationError(f"Invalid byte count: {e}") from e
    if isinstance(size, bool) or not isinstance(size, int): raise ValidationError(f"Byte count must be an integer or a size string: {size!r}")
    if size <= 0: raise ValidationError(f"Byte count must be positive: {size}")
    return self._set('byte_count', size)

  def checksum(self, algo: schemas.checksum_algo_t) -> OptionsBuilder:
    """Specify the checksum algorithm for data & metadata blocks"""
    return self._set('checksum', _choice('checksum algorithm', algo, schemas.CHECKSUM_ALGOS))

  def data(self, profile: schemas.data_profile_t) -> OptionsBuilder:
    """Specify the profile for data block groups"""
    return self._set('data', _choice('data profile', profile, schemas.DATA_PROFILES))

  def device_uuid(self, value: uuid.UUID | str) -> OptionsBuilder:
    """Set the UUID of the device (`dev_item` of the superblock)"""
    return self._set('device_uuid', _canonical_uuid('device UUID', value))

  def features(self, names: Iterable[str] | str) -> OptionsBuilder:
    """Set mkfs-time features. Unset features by prefixing them with `^`."""
    return self._set('features', _names('features', names))

  def force(self) -> OptionsBuilder:
    """Force-format the device, even if an existing filesystem is present"""
    return self._set('force', True)

  def label(self, text: str) -> OptionsBuilder:
    """Set the filesystem label; at most 256 bytes once UTF-8 encoded"""
    if not isinstance(text, str): raise ValidationError(f"Label must be a string: {text!r}")
    if '\x00' in text: raise ValidationError("Label cannot contain a NUL character")
    try: size = len(text.encode())
    except UnicodeEncodeError as e: raise ValidationError(f"Label is not encodable as UTF-8: {text!r}") from e
    if size > MAX_LABEL_BYTES: raise ValidationError(f"Label must be {MAX_LABEL_BYTES} bytes or less: {size}")
    return self._set('label', text)

  def metadata(self, profile: schemas.data_profile_t) -> OptionsBuilder:
    """Specify the profile for metadata block groups"""
    return self._set('metadata', _choice('metadata profile', profile, schemas.DATA_PROFILES))

  def mixed(self) -> OptionsBuilder:
    """Enable mixing of data and metadata blocks"""
    return self._set('mixed', True)

  def no_discard(self) -> OptionsBuilder:
    """Disable the implicit TRIM of the storage device"""
    return self._set('no_discard', True)

  def nodesize(self, size: int) -> OptionsBuilder:
    """Specify the size of a b-tree node; a power of 2 no larger than 16KiB"""
    size = _integer('nodesize', size)
    if not (utils.is_power_of_two(size) and size <= MAX_NODESIZE): raise ValidationError(f"Nodesize must be a power of 2 & <= {MAX_NODESIZE}: {size}")
    return self._set('nodesize', size)

  def quiet(self) -> OptionsBuilder:
    """Only print errors & warnings"""
    return self._set('quiet', True)

  def rootdir(self, path: str | os.PathLike) -> OptionsBuilder:
    """Specify a directory whose contents are copied into the new filesystem"""
    try: path = os.fspath(path)
    except TypeError as e: raise ValidationError(f"Root directory must be a path: {path!r}") from e
    if isinstance(path, bytes): path = os.fsdecode(path)
    if not path: raise ValidationError("Root directory cannot be empty")
    if '\x00' in path: raise ValidationError(f"Root directory cannot contain a NUL character: {path!r}")
    try: os.fsencode(path)
    except UnicodeEncodeError as e: raise ValidationError(f"Root directory is not representable on the command line: {path!r}") from e
    return self._set('rootdir', path)

  def runtime_features(self, names: Iterable[schemas.runtime_feature_t] | str) -> OptionsBuilder:
    """Set runtime features. Unset features by prefixing them with `^`."""
    return self._set('runtime_features', _names('runtime features', names, allowed=schemas.RUNTIME_FEATURES))

  def sectorsize(self, size: int) -> OptionsBuilder:
    """Set the sector size.

    *If set to a value unsupported by the current kernel, the resulting volume will not be mountable.*
    """
    size = _integer('sectorsize', size)
    if not (utils.is_power_of_two(size) and MIN_SECTORSIZE <= size <= MAX_SECTORSIZE):
      raise ValidationError(f"Sectorsize must be a power of 2 between {MIN_SECTORSIZE} & {MAX_SECTORSIZE}: {size}")
    return self._set('sectorsize', size)

  def shrink(self) -> OptionsBuilder:
    """Shrink a file target to the minimum size needed to hold `rootdir`"""
    return self._set('shrink', True)

  def uuid(self, value: uuid.UUID | str) -> OptionsBuilder:
    """Set the filesystem UUID"""
    return self._set('uuid', _canonical_uuid('UUID', value))

  def verbose(self) -> OptionsBuilder:
    """Print more information about the filesystem being created"""
    return self._set('verbose', True)

  def dump_args(self) -> OptionsBuilder:
    """Log the arguments as they'll be passed to mkfs.btrfs"""
    logger.debug(f"mkfs.btrfs arguments: {Options(**self._opts).to_args()}")
    return self

  def build(self) -> Options:
    """Finalize the options, checking the rules that depend on more than one option"""
    opts = Options(**self._opts)
    if conflicts := opts.conflicts(): raise ValidationError(f"Conflicting options: {'; '.join(conflicts)}")
    return opts

def _choice(what: str, value: str, choices: tuple[str, ...]) -> str:
  if not isinstance(value, str) or value.lower() not in choices: raise ValidationError(f"Unsupported {what}: {value!r}; expected one of {', '.join(choices)}")
  return value.lower()

def _integer(what: str, value: int) -> int:
  if isinstance(value, bool) or not isinstance(value, int): raise ValidationError(f"{what.capitalize()} must be an integer: {value!r}")
  return value

def _canonical_uuid(what: str, value: uuid.UUID | str) -> str:
  if isinstance(value, uuid.UUID): return str(value)
  if not isinstance(value, str): raise ValidationError(f"Invalid {what}: {value!r}")
  try: return str(uuid.UUID(value))
  except ValueError as e: raise ValidationError(f"Invalid {what}: {value!r}") from e

def _names(what: str, names: Iterable[str] | str, allowed: tuple[str, ...] | None = None) -> tuple[str, ...]:
  if isinstance(names, str): names = [names]
  try: names = tuple(names)
  except TypeError as e: raise ValidationError(f"{what.capitalize()} must be an iterable of names: {names!r}") from e
  if not names: raise ValidationError(f"{what.capitalize()} requires at least one name")
  for name in names:
    if not (isinstance(name, str) and FEATURE_NAME_RE.fullmatch(name)): raise ValidationError(f"Invalid name in {what}: {name!r}")
    if allowed is not None and name.lstrip('^') not in allowed: raise ValidationError(f"Unsupported {what}: {name!r}; expected one of {', '.join(allowed)}")
  return names

class ValidationError(ValueError): ...
