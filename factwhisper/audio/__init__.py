"""Audio pipeline: mu-law codec, resampling, whisper attenuation, outbound framing."""
from .codec import (
    attenuate,
    convert_to_telephony,
    decode_mulaw,
    encode_mulaw,
    resample_linear,
)
from .chunker import iter_frames, send_frames

__all__ = [
    "attenuate",
    "convert_to_telephony",
    "decode_mulaw",
    "encode_mulaw",
    "resample_linear",
    "iter_frames",
    "send_frames",
]
