from typing import TypedDict, Literal, get_args

checksum_algo_t = Literal['crc32c', 'xxhash', 'sha256', 'blake2']
data_profile_t = Literal['raid0', 'raid1', 'raid1c3', 'raid1c4', 'raid5', 'raid6', 'raid10', 'single', 'dup']
runtime_feature_t = Literal['quota', 'free-space-tree']

CHECKSUM_ALGOS: tuple[str, ...] = get_args(checksum_algo_t)
DATA_PROFILES: tuple[str, ...] = get_args(data_profile_t)
RUNTIME_FEATURES: tuple[str, ...] = get_args(runtime_feature_t)

class Output(TypedDict):
  """The captured result of a single mkfs.btrfs invocation"""
  args: list[str]
  """The full argument vector that was executed"""
  status: int
  """The exit status of the process; non-zero is not an error of the wrapper"""
  stdout: bytes
  """Everything the process wrote to stdout"""
  stderr: bytes
  """Everything the process wrote to stderr"""
