"""
YAML cut lists: several sections cut out of one firmware file

  type: fw-cut
  input: ti_stack.bin
  signature: 0xABCD
  sections:
    - output: fota_lower.bin
      offset: 0x203000
      size: 0x28000
      major: 2
      minor: 0
    - output: fota_upper.bin
      offset: 0x22B000
      size: 0x28000
      major: 2
      minor: 0
      metadata: false
"""

__all__ = [
    'CutSpec',
    'cutlist_parse',
    'cutlist_load',
]

from dataclasses import dataclass
from pathlib import Path
import yaml


@dataclass
class CutSpec:
    output:    Path
    offset:    int
    size:      int
    signature: int = 0
    major:     int = 0
    minor:     int = 0
    metadata:  bool = True


def _number(ent, name, bits, default=None):
    val = ent.get(name, default)
    if val is None:
        raise ValueError(f'missing "{name}"')

    if isinstance(val, str):
        try:
            val = int(val, 0)
        except ValueError:
            raise ValueError(f'"{name}" is not a number: {val!r}')
    elif isinstance(val, bool) or not isinstance(val, int):
        raise ValueError(f'"{name}" is not a number: {val!r}')

    if not 0 <= val < (1 << bits):
        raise ValueError(f'"{name}" is out of range: 0x{val:x}')

    return val

def _flag(ent, name, default):
    val = ent.get(name, default)

    if isinstance(val, bool):
        return val
    if isinstance(val, int) and val in (0, 1):
        return bool(val)

    raise ValueError(f'"{name}" is not a boolean: {val!r}')

def cutlist_parse(info, basedir=Path('.')):
    """ Turn the parsed YAML document into the input path and a list of CutSpec's """
    if not isinstance(info, dict) or info.get('type') != 'fw-cut':
        raise ValueError('This yaml file is not a firmware cut list!')

    if 'input' not in info:
        raise ValueError('The input file is missing.')

    sections = info.get('sections')
    if not sections:
        raise ValueError('The section list is missing.')

    try:
        defsig = _number(info, 'signature', 16, 0)
    except ValueError as e:
        raise ValueError(f'top level: {e}')

    cuts = []

    for i, ent in enumerate(sections):
        try:
            if not isinstance(ent, dict):
                raise ValueError('not a mapping')
            if 'output' not in ent:
                raise ValueError('missing "output"')

            cuts.append(CutSpec(
                output    = basedir / ent['output'],
                offset    = _number(ent, 'offset', 32),
                size      = _number(ent, 'size', 32),
                signature = _number(ent, 'signature', 16, defsig),
                major     = _number(ent, 'major', 8, 0),
                minor     = _number(ent, 'minor', 8, 0),
                metadata  = _flag(ent, 'metadata', True),
            ))
        except ValueError as e:
            raise ValueError(f'section #{i}: {e}')

    return basedir / info['input'], cuts

def cutlist_load(path):
    path = Path(path)

    with open(path) as f:
        info = yaml.load(f, Loader=yaml.SafeLoader)

    return cutlist_parse(info, path.parent)
