from fwcutter.crc import crc32_gen
from fwcutter.image import METADATA_SIZE, metadata_unpack
import fw_cutter
import fw_batch
import fw_info
import yaml
import pytest


@pytest.fixture
def firmware(tmp_path):
    path = tmp_path / 'fw.bin'
    path.write_bytes(bytes(range(256)) * 16)
    return path

def test_cut_with_metadata(firmware, tmp_path):
    out = tmp_path / 'fota.bin'
    info = tmp_path / 'fota.yaml'

    fw_cutter.main([
        '--timestamp', '1700000000', '--info', str(info), '--selftest',
        str(firmware), '0x100', '200', 'ABCD', '2', '0', '1', str(out),
    ])

    code = firmware.read_bytes()[0x100:0x300]
    image = out.read_bytes()
    meta = metadata_unpack(image)

    assert image[METADATA_SIZE:] == code
    assert meta['version'] == 0xABCD0200
    assert meta['timestamp'] == 1700000000
    assert meta['crc'] == crc32_gen(code)
    assert meta['length'] == 0x200

    desc = yaml.safe_load(info.read_text())
    assert desc['crc'] == meta['crc']
    assert desc['image_size'] == METADATA_SIZE + 0x200

def test_cut_without_metadata(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'

    fw_cutter.main([str(firmware), '0', '10', 'ABCD', '1', '0', '0', str(out)])

    assert out.read_bytes() == firmware.read_bytes()[:0x10]
    assert 'METADATA NOT CREATED' in capsys.readouterr().out

def test_cut_beyond_the_end(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'

    with pytest.raises(SystemExit) as exc:
        fw_cutter.main([str(firmware), 'F00', '200', 'ABCD', '1', '0', '1', str(out)])

    assert exc.value.code == 1
    assert not out.exists()
    assert 'available' in capsys.readouterr().err

@pytest.mark.parametrize('args', [
    ['zz', '10', 'ABCD', '1', '0', '1'],
    ['0', '10', '10000', '1', '0', '1'],
    ['0', '10', 'ABCD', '100', '0', '1'],
    ['0', '10', 'ABCD', '1', '-1', '1'],
])
def test_cut_bad_arguments(firmware, tmp_path, args):
    with pytest.raises(SystemExit) as exc:
        fw_cutter.main([str(firmware)] + args + [str(tmp_path / 'out.bin')])

    assert exc.value.code == 2

def test_info_ok(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'
    fw_cutter.main(['--timestamp', '0', str(firmware), '0', '100', 'ABCD', '2', '1', '1', str(out)])
    capsys.readouterr()

    fw_info.main(['--hexdump', str(out)])

    text = capsys.readouterr().out
    assert 'Signature   : 0xABCD' in text
    assert 'Version     : 2.1' in text
    assert 'OK' in text

def test_info_yaml(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'
    fw_cutter.main(['--timestamp', '0', str(firmware), '0', '100', '1234', '0', '5', '1', str(out)])
    capsys.readouterr()

    fw_info.main(['--yaml', str(out)])

    text = capsys.readouterr().out
    doc = yaml.safe_load(text.split('\n', 1)[1].rsplit('OK', 1)[0])
    assert doc[str(out)]['signature'] == 0x1234
    assert doc[str(out)]['minor'] == 5

def test_info_corrupted(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'
    fw_cutter.main([str(firmware), '0', '100', 'ABCD', '2', '1', '1', str(out)])

    image = bytearray(out.read_bytes())
    image[-1] ^= 0xFF
    out.write_bytes(image)

    with pytest.raises(SystemExit) as exc:
        fw_info.main([str(out)])

    assert exc.value.code == 1
    assert 'MISMATCH' in capsys.readouterr().out

def test_info_too_short(tmp_path):
    path = tmp_path / 'tiny.bin'
    path.write_bytes(b'tiny')

    with pytest.raises(SystemExit):
        fw_info.main([str(path)])

def test_batch(firmware, tmp_path):
    cutlist = tmp_path / 'cuts.yaml'
    cutlist.write_text('''
type: fw-cut
input: fw.bin
signature: 0xABCD
sections:
  - output: lower.bin
    offset: 0
    size: 0x800
    major: 1
  - output: upper.bin
    offset: 0x800
    size: 0x800
    major: 1
    metadata: false
''')

    fw_batch.main(['--timestamp', '0', str(cutlist)])

    data = firmware.read_bytes()
    lower = (tmp_path / 'lower.bin').read_bytes()

    assert lower[METADATA_SIZE:] == data[:0x800]
    assert metadata_unpack(lower)['version'] == 0xABCD0100
    assert (tmp_path / 'upper.bin').read_bytes() == data[0x800:]

def test_batch_partial_failure(firmware, tmp_path):
    cutlist = tmp_path / 'cuts.yaml'
    cutlist.write_text('''
type: fw-cut
input: fw.bin
sections:
  - output: bad.bin
    offset: 0xF00
    size: 0x800
  - output: good.bin
    offset: 0
    size: 0x10
''')

    with pytest.raises(SystemExit) as exc:
        fw_batch.main([str(cutlist)])

    assert exc.value.code == 1
    assert not (tmp_path / 'bad.bin').exists()
    assert (tmp_path / 'good.bin').exists()

def test_batch_bad_cutlist(tmp_path):
    cutlist = tmp_path / 'cuts.yaml'
    cutlist.write_text('type: something-else\n')

    with pytest.raises(SystemExit) as exc:
        fw_batch.main([str(cutlist)])

    assert exc.value.code == 1

def test_cut_info_failure_leaves_no_image(firmware, tmp_path, capsys):
    out = tmp_path / 'fota.bin'
    info = tmp_path / 'nodir' / 'fota.yaml'

    with pytest.raises(SystemExit) as exc:
        fw_cutter.main(['--info', str(info), str(firmware), '0', '100', 'ABCD', '1', '0', '1', str(out)])

    assert exc.value.code == 1
    assert not out.exists()
    assert 'Error' in capsys.readouterr().err

def test_cut_image_failure_removes_info(firmware, tmp_path):
    out = tmp_path / 'nodir' / 'fota.bin'
    info = tmp_path / 'fota.yaml'

    with pytest.raises(SystemExit) as exc:
        fw_cutter.main(['--info', str(info), str(firmware), '0', '100', 'ABCD', '1', '0', '1', str(out)])

    assert exc.value.code == 1
    assert not info.exists()
