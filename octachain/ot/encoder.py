"""
Octatrack .ot metadata encoder.

Builds the fixed 832-byte record that accompanies a sample chain WAV:
header, tempo and trim/loop settings, a 64-slot slice table, the slice
count and a 16-bit additive checksum. All multi-byte fields are
big-endian.

Layout:
    0    23   magic/version header
    23   4    tempo (BPM * 24)
    27   4    trim length (bars)
    31   4    loop length (bars)
    35   4    stretch (0)
    39   4    loop mode (0)
    43   2    gain (48)
    45   1    quantize (255)
    46   4    trim start (0)
    50   4    trim end (total real samples)
    54   4    loop point (0)
    58   768  64 slots x (start, end, loop)
    826  4    slice count
    830  2    checksum of bytes[16:830]
"""

from __future__ import annotations

import logging
import struct
from typing import List, Optional, Sequence

import numpy as np

from octachain.ot.byte_buffer import ByteBuffer
from octachain.slicer.slice import MAX_SLICES, Slice

logger = logging.getLogger(__name__)

OT_HEADER = bytes([
    0x46, 0x4F, 0x52, 0x4D, 0x00, 0x00, 0x00, 0x00,
    0x44, 0x50, 0x53, 0x31, 0x53, 0x4D, 0x50, 0x41,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x02, 0x00,
])

# Checksum skips the "FORM....DPS1SMPA" prefix
CHECKSUM_START = 16

TEMPO_UNITS_PER_BPM = 24
# Bar length is computed against a fixed 124 BPM, not the run's tempo
BARS_REFERENCE_TEMPO = 124.0
BARS_SCALE = 25

STRETCH_OFF = 0
LOOP_OFF = 0
DEFAULT_GAIN = 48
QUANTIZE_DIRECT = 255

SLOT_SIZE = 12
SLOTS_OFFSET = 58
SLICE_COUNT_OFFSET = SLOTS_OFFSET + MAX_SLICES * SLOT_SIZE  # 826
CHECKSUM_OFFSET = SLICE_COUNT_OFFSET + 4  # 830
OT_FILE_SIZE = CHECKSUM_OFFSET + 2  # 832


def tempo_to_device(tempo: int) -> int:
    """Tempo in the device's 1/24 BPM unit."""
    return int(tempo) * TEMPO_UNITS_PER_BPM


def samples_to_bars(total_samples: int, sample_rate: int) -> int:
    """
    Trim/loop length in the device's fixed-point bar unit.

    Evaluated in 32-bit float, then truncated and scaled by 25.
    """
    bars = (
        np.float32(BARS_REFERENCE_TEMPO) * np.float32(total_samples)
        / np.float32(sample_rate * 60)
        + np.float32(0.5)
    )
    return int(bars) * BARS_SCALE


def build_slot_table(slices: Sequence[Slice]) -> List[Optional[Slice]]:
    """Place slices left-to-right into the fixed 64-slot table."""
    if len(slices) > MAX_SLICES:
        raise ValueError(f"Too many slices: {len(slices)} (max {MAX_SLICES})")
    table: List[Optional[Slice]] = [None] * MAX_SLICES
    for index, slice_ in enumerate(slices):
        table[index] = slice_
    return table


def compute_checksum(data: bytes) -> int:
    """16-bit wraparound sum of every byte from offset 16 onwards."""
    return sum(data[CHECKSUM_START:]) & 0xFFFF


def verify_checksum(data: bytes) -> bool:
    """True if ``data`` is a full .ot record whose stored checksum matches."""
    if len(data) != OT_FILE_SIZE:
        return False
    stored = struct.unpack(">H", data[CHECKSUM_OFFSET:OT_FILE_SIZE])[0]
    return stored == compute_checksum(data[:CHECKSUM_OFFSET])


def encode(slices: Sequence[Slice], sample_rate: int, tempo: int) -> bytes:
    """
    Encode the .ot record for a chain.

    Args:
        slices: Slices in chain order (at most 64)
        sample_rate: Chain sample rate (Hz)
        tempo: Chain tempo (BPM)

    Returns:
        The 832-byte record
    """
    table = build_slot_table(slices)
    total_samples = sum(s.length for s in slices)
    bars = samples_to_bars(total_samples, sample_rate)

    buf = ByteBuffer(OT_HEADER)
    buf.push_u32(tempo_to_device(tempo))
    buf.push_u32(bars)  # trim length
    buf.push_u32(bars)  # loop length
    buf.push_u32(STRETCH_OFF)
    buf.push_u32(LOOP_OFF)
    buf.push_u16(DEFAULT_GAIN)
    buf.push_u8(QUANTIZE_DIRECT)
    buf.push_u32(0)  # trim start
    buf.push_u32(total_samples)  # trim end
    buf.push_u32(0)  # loop point

    for slot in table:
        if slot is None:
            buf.push_u32(0).push_u32(0).push_u32(0)
        else:
            buf.push_u32(slot.start_point)
            buf.push_u32(slot.end_point)
            buf.push_u32(slot.loop_point)

    buf.push_u32(len(slices))

    checksum = buf.sum_bytes(CHECKSUM_START) & 0xFFFF
    buf.push_u16(checksum)

    logger.debug(
        "Encoded .ot: %d slices, %d samples, %d bars, checksum 0x%04x",
        len(slices),
        total_samples,
        bars,
        checksum,
    )
    return buf.to_bytes()
