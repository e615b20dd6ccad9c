import os
import orjson, pytest

from mkfs_btrfs.__main__ import CLIError, assemble, parse_argv, run

posix_only = pytest.mark.skipif(os.name != 'posix', reason="stand in programs are POSIX shell scripts")

def test_parse_argv_splits_target_options_and_flags():
  target, kv, flags, dry_run = parse_argv(['label=ROOT', 'no-discard', '/dev/sdxY', 'byte-count=512MiB', '--dry-run'])
  assert target == '/dev/sdxY'
  assert kv == {'label': 'ROOT', 'byte_count': '512MiB'}
  assert flags == ['no_discard']
  assert dry_run is True

@pytest.mark.parametrize('argv', [[], ['force'], ['/dev/sda', '/dev/sdb'], ['--label', 'ROOT', '/dev/sda']])
def test_parse_argv_rejects_bad_command_lines(argv):
  with pytest.raises(CLIError):
    parse_argv(argv)

def test_assemble_converts_values():
  opts = assemble(
    {'nodesize': '16384', 'features': 'mixed-bg,quota', 'shrink': 'no', 'force': 'yes', 'rootdir': './testdir'},
    ['mixed'],
  ).build()
  assert opts.nodesize == 16384
  assert opts.features == ('mixed-bg', 'quota')
  assert opts.shrink is False
  assert opts.force is True
  assert opts.mixed is True

@pytest.mark.parametrize('kv', [{'nodesize': 'big'}, {'force': 'maybe'}, {'compress': 'zstd'}])
def test_assemble_rejects_bad_values(kv):
  with pytest.raises(CLIError):
    assemble(kv, [])

def test_dry_run_prints_the_argument_vector(capsys, monkeypatch):
  monkeypatch.delenv('MKFS_BTRFS', raising=False)
  rc = run(['label=My Awesome New Partition', 'mixed', 'rootdir=/', '/dev/sdxY', '--dry-run'])
  assert rc == 0
  assert orjson.loads(capsys.readouterr().out) == [
    'mkfs.btrfs', '--label', 'My Awesome New Partition', '--mixed', '--rootdir', '/', '/dev/sdxY',
  ]

@posix_only
def test_run_prints_the_captured_output(capsys, monkeypatch, echo_program):
  monkeypatch.setenv('MKFS_BTRFS', echo_program.as_posix())
  rc = run(['label=ROOT', 'force', './test.btrfs'])
  assert rc == 0
  result = orjson.loads(capsys.readouterr().out)
  assert result['status'] == 0
  assert result['args'] == [echo_program.as_posix(), '--force', '--label', 'ROOT', './test.btrfs']
  assert result['stdout'] == '--force\n--label\nROOT\n./test.btrfs\n'
  assert result['stderr'] == ''

@posix_only
def test_run_reports_a_failed_format(capsys, monkeypatch, fake_program):
  monkeypatch.setenv('MKFS_BTRFS', fake_program('exit 1').as_posix())
  assert run(['./test.btrfs']) == 1
  assert orjson.loads(capsys.readouterr().out)['status'] == 1

@pytest.mark.parametrize('argv', [
  [f"label={'x' * 257}", './test.btrfs'],
  ['quiet', 'verbose', './test.btrfs'],
  ['checksum=md5', './test.btrfs'],
  ['./test.btrfs', 'unknown=1'],
  [],
])
def test_usage_and_validation_errors_exit_2(capsys, argv):
  assert run(argv) == 2
  assert capsys.readouterr().out == ''

def test_spawn_error_exits_3(capsys, monkeypatch, tmp_path):
  monkeypatch.setenv('MKFS_BTRFS', (tmp_path / 'mkfs.nonexistent').as_posix())
  assert run(['./test.btrfs']) == 3
  assert capsys.readouterr().out == ''
