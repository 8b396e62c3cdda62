"""
Octatrack .ot metadata encoding.
"""

from octachain.ot.byte_buffer import ByteBuffer
from octachain.ot.encoder import OT_FILE_SIZE, compute_checksum, encode, verify_checksum

__all__ = [
    "ByteBuffer",
    "OT_FILE_SIZE",
    "compute_checksum",
    "encode",
    "verify_checksum",
]
