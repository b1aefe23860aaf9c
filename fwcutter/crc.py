"""
Bit-reflected CRC-32, as computed by the target's CRC peripheral
"""

__all__ = [
    'POLYNOMIAL',
    'INITIAL_REMAINDER',
    'FINAL_XOR_VALUE',
    'WIDTH',
    'PRECOMPUTED_TEST_CRC',
    'reflect',
    'crc32_gen',
    'crc32_tab',
    'crc_selftest',
]

import crcmod

POLYNOMIAL        = 0x04C11DB7      # IEEE 802.3
INITIAL_REMAINDER = 0xFFFFFFFF
FINAL_XOR_VALUE   = 0xFFFFFFFF
WIDTH             = 32
TOPBIT            = 1 << (WIDTH - 1)
MASK              = (1 << WIDTH) - 1

# CRC of b'123456789'
PRECOMPUTED_TEST_CRC = 0xCBF43926


def reflect(data, nbits):
    """ Reverse the order of the lower nbits bits of data """
    reflection = 0

    for bit in range(nbits):
        if data & 1:
            reflection |= 1 << ((nbits - 1) - bit)
        data >>= 1

    return reflection

def crc32_gen(data):
    """ Calculate the CRC-32 of data the same way the hardware does (bit by bit) """
    remainder = INITIAL_REMAINDER

    for byte in data:
        remainder ^= reflect(byte, 8) << (WIDTH - 8)

        for _ in range(8):
            if remainder & TOPBIT:
                remainder = ((remainder << 1) ^ POLYNOMIAL) & MASK
            else:
                remainder = (remainder << 1) & MASK

    return reflect(remainder, WIDTH) ^ FINAL_XOR_VALUE

# Same thing, table-driven. crcmod wants the initial value as the result for an empty message.
crc32_tab = crcmod.mkCrcFun((1 << WIDTH) | POLYNOMIAL,
                            initCrc=reflect(INITIAL_REMAINDER, WIDTH) ^ FINAL_XOR_VALUE,
                            rev=True, xorOut=FINAL_XOR_VALUE)

def crc_selftest():
    """ Check both CRC implementations against the known test vector """
    for name, fun in (('crc32_gen', crc32_gen), ('crc32_tab', crc32_tab)):
        crc = fun(b'123456789')
        if crc != PRECOMPUTED_TEST_CRC:
            raise RuntimeError(f'{name}: precomputed & calculated CRC don\'t match '
                               f'(0x{crc:08x} != 0x{PRECOMPUTED_TEST_CRC:08x})')
