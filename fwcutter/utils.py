__all__ = [
    'anyint',
    'hexint',
    'uint',
    'hexdump',
]

import argparse


def anyint(s):
    return int(s, 0)

def hexint(s):
    return int(s, 16)

def uint(bits, conv=hexint):
    """ Make an argparse type for an unsigned number that has to fit into the specified bit count """
    maxval = (1 << bits) - 1

    def parse(s):
        try:
            val = conv(s)
        except ValueError:
            raise argparse.ArgumentTypeError(f'"{s}" is not a number')

        if not 0 <= val <= maxval:
            raise argparse.ArgumentTypeError(f'{s} is out of range (0..0x{maxval:x})')

        return val

    parse.__name__ = f'uint{bits}'
    return parse

def hexdump(data, off=0, width=16):
    for i in range(0, len(data), width):
        line = data[i : i+width]
        hexs = ' '.join(f'{b:02X}' for b in line)
        chrs = ''.join(chr(b) if 0x20 <= b < 0x7f else '.' for b in line)
        print(f'{off + i:08X}: {hexs:<{width * 3 - 1}} |{chrs}|')
