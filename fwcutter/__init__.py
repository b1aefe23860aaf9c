"""
Firmware section cutter: CRC-32 and metadata header helpers
"""
