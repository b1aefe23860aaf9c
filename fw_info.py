from fwcutter.crc import crc32_tab
from fwcutter.image import image_check, metadata_unpack, METADATA_SIZE
from fwcutter.utils import hexdump

from datetime import datetime, timezone
from pathlib import Path
import argparse
import sys
import yaml

###############################################################################

def make_parser():
    ap = argparse.ArgumentParser(description='Firmware image metadata dumper/checker')

    ap.add_argument('--yaml', action='store_true',
                    help='Print the decoded metadata as yaml')

    ap.add_argument('--hexdump', action='store_true',
                    help='Dump the raw metadata header too')

    ap.add_argument('image', type=Path, nargs='+',
                    help='Firmware image(s) with a metadata header')

    return ap

###############################################################################

def image_info(path, show_yaml=False, show_hex=False):
    """ Dump and check a single image, returns True if it checks out """
    image = path.read_bytes()

    try:
        meta = metadata_unpack(image)
    except ValueError as e:
        print(f'{path}: {e}')
        return False

    if show_hex:
        hexdump(image[:METADATA_SIZE])

    if show_yaml:
        print(yaml.dump({str(path): meta}), end='')
    else:
        tstamp = datetime.fromtimestamp(meta['timestamp'], timezone.utc)

        print(f'Signature   : 0x{meta["signature"]:04X}')
        print(f'Version     : {meta["major"]}.{meta["minor"]}')
        print(f'Timestamp   : {tstamp.isoformat()} ({meta["timestamp"]})')
        print(f'Image CRC   : 0x{meta["crc"]:08X}')
        print(f'Code Length : 0x{meta["length"]:X} ({meta["length"]})')

    try:
        image_check(image, crcfun=crc32_tab)
    except ValueError as e:
        print(f'MISMATCH: {e}')
        return False

    print('OK')
    return True

def main(argv=None):
    args = make_parser().parse_args(argv)

    failed = 0

    for path in args.image:
        print(f'##############[ {path} ]##############')

        try:
            if not image_info(path, args.yaml, args.hexdump):
                failed += 1
        except OSError as e:
            print(f'{path}: {e}', file=sys.stderr)
            failed += 1

        print()

    if failed:
        sys.exit(1)

if __name__ == '__main__':
    main()
