"""
Firmware image composition: [metadata header][code]

Metadata header layout (64 bytes, little-endian):

00.03 = Version tag  (signature << 16 | major << 8 | minor)
04.07 = Timestamp    (Unix seconds)
08.0B = Code CRC-32  (see fwcutter.crc)
0C.0F = Code length  (bytes)
10.3F = <reserved, zero>
"""

__all__ = [
    'METADATA_SIZE',
    'METADATA_FMT',
    'version_tag',
    'version_split',
    'current_timestamp',
    'metadata_pack',
    'metadata_unpack',
    'compose',
    'image_check',
]

from fwcutter.crc import crc32_gen
import struct
import time
import os

METADATA_FMT  = '<IIII48x'
METADATA_SIZE = struct.calcsize(METADATA_FMT)


def version_tag(signature, major, minor):
    """ Pack the image signature and version into a 32-bit tag """
    return (signature << 16) | (major << 8) | minor

def version_split(tag):
    """ Split a version tag back into (signature, major, minor) """
    return (tag >> 16) & 0xFFFF, (tag >> 8) & 0xFF, tag & 0xFF

def current_timestamp():
    """ Build timestamp in whole seconds, SOURCE_DATE_EPOCH takes precedence if set """
    epoch = os.environ.get('SOURCE_DATE_EPOCH')
    if epoch:
        try:
            ts = int(epoch)
        except ValueError:
            raise ValueError(f'SOURCE_DATE_EPOCH is not a number: {epoch!r}')

        if not 0 <= ts <= 0xFFFFFFFF:
            raise ValueError(f'SOURCE_DATE_EPOCH is out of range (0..0xffffffff): {epoch}')

        return ts

    return int(time.time()) & 0xFFFFFFFF

def metadata_pack(version, timestamp, crc, length):
    return struct.pack(METADATA_FMT, version, timestamp, crc, length)

def metadata_unpack(data):
    """ Decode the metadata header at the beginning of data """
    if len(data) < METADATA_SIZE:
        raise ValueError(f'Metadata header is {METADATA_SIZE} bytes, got only {len(data)}')

    version, timestamp, crc, length = struct.unpack_from(METADATA_FMT, data)
    signature, major, minor = version_split(version)

    return {
        'version':   version,
        'signature': signature,
        'major':     major,
        'minor':     minor,
        'timestamp': timestamp,
        'crc':       crc,
        'length':    length,
    }

def compose(code, version, timestamp, include_metadata):
    """ Make the firmware image out of the code, prepending the metadata if asked to """
    if not include_metadata:
        return bytes(code)

    hdr = metadata_pack(version, timestamp, crc32_gen(code), len(code))
    return hdr + bytes(code)

def image_check(image, crcfun=crc32_gen):
    """ Split an image with metadata into (metadata, code), verifying the length and the CRC """
    meta = metadata_unpack(image)
    code = image[METADATA_SIZE:]

    if meta['length'] != len(code):
        raise ValueError(f'Code length mismatch ({meta["length"]} in header, {len(code)} in image)')

    crc = crcfun(code)
    if meta['crc'] != crc:
        raise ValueError(f'Code CRC mismatch (0x{meta["crc"]:08X} != 0x{crc:08X})')

    return meta, code
