"""
Reading the firmware section and writing out the image
"""

__all__ = [
    'read_section',
    'write_image',
]

import tempfile
import os


def read_section(path, offset, size):
    """ Read exactly size bytes from offset, refusing to return anything shorter """
    with open(path, 'rb') as f:
        f.seek(0, os.SEEK_END)
        fsize = f.tell()

        if offset > fsize:
            raise ValueError(f'Offset 0x{offset:x} is beyond the end of the file (0x{fsize:x} bytes)')

        if fsize - offset < size:
            raise ValueError(f'Only 0x{fsize - offset:x} bytes available at offset 0x{offset:x},'
                             f' 0x{size:x} requested')

        f.seek(offset)
        data = f.read(size)

    # the file might have been truncated under our feet
    if len(data) != size:
        raise ValueError(f'Short read: got 0x{len(data):x} out of 0x{size:x} bytes')

    return data

def write_image(path, data):
    """ Write data into path, so that either the whole image gets there or nothing at all """
    path = os.fspath(path)
    fd, tmppath = tempfile.mkstemp(prefix='.' + os.path.basename(path) + '.',
                                   dir=os.path.dirname(path) or '.')

    try:
        with os.fdopen(fd, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates the file as 0600
        os.chmod(tmppath, 0o644)
        os.replace(tmppath, path)
    except BaseException:
        os.unlink(tmppath)
        raise
