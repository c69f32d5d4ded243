"""
Telephony audio codec: G.711 mu-law <-> PCM 16-bit, linear resampling, attenuation.

- PCM contract: signed int16, little-endian, mono. A trailing odd byte is ignored.
- mu-law: 8-bit, bias 0x84, clip 32635, sign bit 0x80, bits inverted on the wire.
  Bit-exact with standard G.711 decoders (no zero trap).
- All functions return new buffers; inputs are never mutated.
"""
from __future__ import annotations

import numpy as np

MULAW_BIAS = 0x84
MULAW_CLIP = 32635
TELEPHONY_SAMPLE_RATE = 8000

_PCM_DTYPE = np.dtype("<i2")

# Segment (exponent) lookup indexed by biased magnitude >> 7
_EXP_LUT = np.array([0] + [i.bit_length() - 1 for i in range(1, 256)], dtype=np.int32)


def _build_decode_table() -> np.ndarray:
    codes = ~np.arange(256, dtype=np.int32) & 0xFF
    sign = codes & 0x80
    exponent = (codes >> 4) & 0x07
    mantissa = codes & 0x0F
    magnitude = (((mantissa << 3) + MULAW_BIAS) << exponent) - MULAW_BIAS
    return np.where(sign != 0, -magnitude, magnitude).astype(np.int16)


_DECODE_TABLE = _build_decode_table()


def _pcm_samples(pcm: bytes | np.ndarray) -> np.ndarray:
    """View PCM bytes (or an int array) as samples without copying bytes input."""
    if isinstance(pcm, np.ndarray):
        return pcm
    usable = len(pcm) - (len(pcm) % 2)
    return np.frombuffer(pcm, dtype=_PCM_DTYPE, count=usable // 2)


def encode_mulaw(pcm: bytes | np.ndarray) -> bytes:
    """Encode PCM 16-bit samples to mu-law bytes. One sample -> one byte; magnitudes above the clip are clipped."""
    samples = _pcm_samples(pcm).astype(np.int32)
    if samples.size == 0:
        return b""
    sign = np.where(samples < 0, 0x80, 0)
    magnitude = np.minimum(np.abs(samples), MULAW_CLIP) + MULAW_BIAS
    exponent = _EXP_LUT[(magnitude >> 7) & 0xFF]
    mantissa = (magnitude >> (exponent + 3)) & 0x0F
    encoded = ~(sign | (exponent << 4) | mantissa) & 0xFF
    return encoded.astype(np.uint8).tobytes()


def decode_mulaw(data: bytes) -> bytes:
    """Decode mu-law bytes to PCM 16-bit little-endian. One byte -> one sample (2 bytes)."""
    codes = np.frombuffer(data, dtype=np.uint8)
    return _DECODE_TABLE[codes].astype(_PCM_DTYPE).tobytes()


def resample_linear(pcm: bytes, source_rate: int, target_rate: int) -> bytes:
    """
    Resample PCM 16-bit with linear interpolation between the two nearest source samples.

    Equal rates return the input object itself (callers must not mutate it).
    Output length is floor(n * target_rate / source_rate) samples. The last source
    sample has no successor and is used as-is.
    """
    if source_rate == target_rate:
        return pcm
    if source_rate <= 0 or target_rate <= 0:
        raise ValueError(f"sample rates must be positive, got {source_rate} -> {target_rate}")

    samples = _pcm_samples(pcm).astype(np.float64)
    n = samples.size
    out_len = n * target_rate // source_rate
    if out_len == 0:
        return b""

    positions = np.arange(out_len, dtype=np.float64) * (source_rate / target_rate)
    idx = np.floor(positions).astype(np.int64)
    frac = positions - idx
    nxt = np.minimum(idx + 1, n - 1)
    interpolated = np.floor(samples[idx] * (1.0 - frac) + samples[nxt] * frac + 0.5)
    out = np.where(idx + 1 < n, interpolated, samples[idx])
    return np.clip(out, -32768, 32767).astype(_PCM_DTYPE).tobytes()


def attenuate(mulaw: bytes, factor: float = 0.5) -> bytes:
    """Scale mu-law audio by factor (whisper effect): decode, multiply, round half-up, re-encode. Length preserved."""
    codes = np.frombuffer(mulaw, dtype=np.uint8)
    samples = _DECODE_TABLE[codes].astype(np.float64)
    scaled = np.clip(np.floor(samples * factor + 0.5), -32768, 32767)
    return encode_mulaw(scaled.astype(np.int32))


def convert_to_telephony(pcm: bytes, source_rate: int, target_rate: int = TELEPHONY_SAMPLE_RATE) -> bytes:
    """Provider PCM (e.g. 22050Hz TTS output) -> mu-law at the telephony rate."""
    return encode_mulaw(resample_linear(pcm, source_rate, target_rate))
