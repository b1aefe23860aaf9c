from fwcutter.crc import crc_selftest
from fwcutter.image import version_tag, current_timestamp, compose, metadata_unpack
from fwcutter.section import read_section, write_image
from fwcutter.utils import anyint, hexint, uint

from pathlib import Path
import argparse
import sys
import os
import yaml

###############################################################################

def make_parser():
    ap = argparse.ArgumentParser(description='Firmware section cutter',
                                 epilog='Example: %(prog)s ti_stack.bin 0x203000 0x28000 0xABCD 2 0 1 fota_lower.bin')

    ap.add_argument('--timestamp', type=uint(32, anyint),
                    help='Use this timestamp instead of the current time (SOURCE_DATE_EPOCH is honored too)')

    ap.add_argument('--info', type=Path, metavar='FILE',
                    help='Write a yaml file describing the produced image')

    ap.add_argument('--selftest', action='store_true',
                    help='Check the CRC implementation against a known vector before doing anything')

    ap.add_argument('input', type=Path,
                    help='Input firmware file')

    ap.add_argument('start', type=uint(32),
                    help='Section start offset (hex)')

    ap.add_argument('size', type=uint(32),
                    help='Section size in bytes (hex)')

    ap.add_argument('signature', type=uint(16),
                    help='Image signature (hex)')

    ap.add_argument('major', type=uint(8),
                    help='Major version (hex)')

    ap.add_argument('minor', type=uint(8),
                    help='Minor version (hex)')

    ap.add_argument('metadata', type=hexint,
                    help='Prepend the metadata header if nonzero')

    ap.add_argument('output', type=Path,
                    help='Output image file')

    return ap

###############################################################################

def cut(infile, output, start, size, signature, major, minor, metadata, timestamp=None, info_path=None):
    """ Cut the section out, compose the image and write it out, returns the image info """
    if timestamp is None:
        timestamp = current_timestamp()

    version = version_tag(signature, major, minor)

    print(f'Input File  : {infile}')
    print(f'Major Ver   : {major}')
    print(f'Minor Ver   : {minor}')
    print(f'Start Offset: 0x{start:x}')
    print(f'Section Size: 0x{size:x}')
    print(f'End Offset  : 0x{start + size:x}')

    code = read_section(infile, start, size)
    print(f'Read in {len(code)} bytes')
    info = {
        'input':    str(infile),
        'output':   str(output),
        'offset':   start,
        'size':     size,
        'metadata': bool(metadata),
    }

    image = compose(code, version, timestamp, metadata)

    if metadata:
        meta = metadata_unpack(image)

        print(f'Signature   : 0x{meta["version"]:08x}')
        print(f'Timestamp   : 0x{meta["timestamp"]:08x} ({meta["timestamp"]})')
        print(f'Image CRC   : 0x{meta["crc"]:08x}')
        print(f'Section Size: 0x{meta["length"]:x}')

        info.update(meta)
    else:
        print('METADATA NOT CREATED (check flag in command-line)')

    info['image_size'] = len(image)

    # sidecar first, so a failed sidecar write leaves no image behind
    if info_path is not None:
        write_image(info_path, yaml.dump(info).encode())

    try:
        write_image(output, image)
    except OSError:
        if info_path is not None:
            os.unlink(info_path)
        raise

    print(f'Output File : {output} ({len(image)} bytes)')

    return info

def main(argv=None):
    args = make_parser().parse_args(argv)

    try:
        if args.selftest:
            crc_selftest()
            print('CRC selftest passed')

        cut(args.input, args.output, args.start, args.size,
            args.signature, args.major, args.minor, args.metadata,
            timestamp=args.timestamp, info_path=args.info)

    except (ValueError, RuntimeError, OSError) as e:
        print(f'Error: {e}', file=sys.stderr)
        sys.exit(1)

if __name__ == '__main__':
    main()
