import pathlib, uuid
import orjson, pytest

from mkfs_btrfs import utils

@pytest.mark.parametrize('size_str, expected', [
  ('4096', 4096),
  ('512MiB', 536_870_912),
  ('1 GB', 1_000_000_000),
  ('1.5KiB', 1536),
  ('0.1MB', 100_000),
  ('100B', 100),
])
def test_convert_to_bytes(size_str, expected):
  assert utils.convert_to_bytes(size_str) == expected

@pytest.mark.parametrize('size_str', ['', 'lots', '12 parsecs', '-1MiB', '1.5B', '0.3KiB'])
def test_convert_to_bytes_rejects_garbage(size_str):
  with pytest.raises(ValueError):
    utils.convert_to_bytes(size_str)

@pytest.mark.parametrize('n, expected', [(1, True), (4096, True), (16384, True), (0, False), (-2, False), (6000, False)])
def test_is_power_of_two(n, expected):
  assert utils.is_power_of_two(n) is expected

def test_json_default_handles_paths_uuids_and_bytes():
  fs_uuid = uuid.UUID('73e1b7e2-a3a8-49c2-b258-06f01a889bba')
  buf = orjson.dumps(
    {'path': pathlib.Path('/dev/sdxY'), 'uuid': fs_uuid, 'stdout': b'btrfs-progs v6.6\n'},
    default=utils.json_default,
  )
  assert orjson.loads(buf) == {
    'path': '/dev/sdxY',
    'uuid': '73e1b7e2-a3a8-49c2-b258-06f01a889bba',
    'stdout': 'btrfs-progs v6.6\n',
  }

def test_json_default_rejects_unknown_types():
  with pytest.raises(orjson.JSONEncodeError):
    orjson.dumps({'x': object()}, default=utils.json_default)
