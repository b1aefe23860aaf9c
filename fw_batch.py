from fwcutter.batch import cutlist_load
from fwcutter.utils import anyint, uint
from fw_cutter import cut

from pathlib import Path
import argparse
import sys

###############################################################################

def make_parser():
    ap = argparse.ArgumentParser(description='Cut several firmware images according to a yaml cut list')

    ap.add_argument('--timestamp', type=uint(32, anyint),
                    help='Use this timestamp for all images instead of the current time')

    ap.add_argument('cutlist', type=Path,
                    help='Input yaml cut list')

    return ap

###############################################################################

def main(argv=None):
    args = make_parser().parse_args(argv)

    try:
        infile, cuts = cutlist_load(args.cutlist)
    except (ValueError, OSError) as e:
        print(f'Bad cut list {args.cutlist}: {e}', file=sys.stderr)
        sys.exit(1)

    print(f'{len(cuts)} sections from {infile}')

    failed = 0

    for i, spec in enumerate(cuts):
        print(f'---------------[ #{i}: {spec.output.name} ]---------------')

        try:
            cut(infile, spec.output, spec.offset, spec.size,
                spec.signature, spec.major, spec.minor, spec.metadata,
                timestamp=args.timestamp)
        except (ValueError, OSError) as e:
            print(f'Error: {e}', file=sys.stderr)
            failed += 1

        print()

    if failed:
        print(f'{failed} of {len(cuts)} sections failed', file=sys.stderr)
        sys.exit(1)

if __name__ == '__main__':
    main()
