"""
WAV packaging for raw PCM returned by speech synthesis, plus data-URI helpers
shared by the image and audio inputs of the flows.
"""

from __future__ import annotations

import base64
import binascii
import io
import wave
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .errors import EncodingError, FlowValidationError


WAV_MIME_TYPE = "audio/wav"
DEFAULT_SAMPLE_RATE_HZ = 24000
DEFAULT_CHANNELS = 1
DEFAULT_BITS_PER_SAMPLE = 16
# multiple of 3 so chunked base64 output concatenates without padding
_B64_CHUNK_BYTES = 3 * 64 * 1024


@dataclass(frozen=True)
class WavInfo:
    channels: int
    sample_rate_hz: int
    bits_per_sample: int
    pcm: bytes


class WavEncoder:
    """
    Incremental WAV writer over an in-memory buffer.

    Usage:

        encoder = WavEncoder(channels=1, sample_rate_hz=24000)
        encoder.begin()
        for chunk in chunks:
            encoder.write(chunk)
        payload = encoder.finalize()   # base64 text of the whole container
    """

    def __init__(
        self,
        channels: int = DEFAULT_CHANNELS,
        sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
        bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
    ) -> None:
        if channels < 1:
            raise EncodingError(f"channels must be >= 1, got {channels}")
        if sample_rate_hz < 1:
            raise EncodingError(f"sample rate must be >= 1, got {sample_rate_hz}")
        if bits_per_sample not in (8, 16, 24, 32):
            raise EncodingError(f"unsupported bit depth: {bits_per_sample}")
        self.channels = channels
        self.sample_rate_hz = sample_rate_hz
        self.bits_per_sample = bits_per_sample
        self._buffer: Optional[io.BytesIO] = None
        self._writer: Optional[wave.Wave_write] = None

    def begin(self) -> None:
        if self._writer is not None:
            raise EncodingError("encoder already started")
        self._buffer = io.BytesIO()
        try:
            writer = wave.open(self._buffer, "wb")
            writer.setnchannels(self.channels)
            writer.setsampwidth(self.bits_per_sample // 8)
            writer.setframerate(self.sample_rate_hz)
        except (wave.Error, OSError) as exc:
            raise EncodingError(f"failed to start wav stream: {exc}") from exc
        self._writer = writer

    def write(self, pcm: bytes) -> None:
        if self._writer is None:
            raise EncodingError("write() called before begin()")
        try:
            self._writer.writeframesraw(pcm)
        except (wave.Error, OSError) as exc:
            raise EncodingError(f"failed to write pcm frames: {exc}") from exc

    def finalize(self) -> str:
        if self._writer is None or self._buffer is None:
            raise EncodingError("finalize() called before begin()")
        try:
            # close() patches the RIFF and data chunk sizes in place
            self._writer.close()
        except (wave.Error, OSError) as exc:
            raise EncodingError(f"failed to finalize wav stream: {exc}") from exc
        view = self._buffer.getbuffer()
        try:
            parts = [
                base64.b64encode(view[offset : offset + _B64_CHUNK_BYTES])
                for offset in range(0, len(view), _B64_CHUNK_BYTES)
            ]
        finally:
            view.release()
        self._writer = None
        self._buffer = None
        return b"".join(parts).decode("ascii")


def encode_wav(
    pcm: bytes,
    channels: int = DEFAULT_CHANNELS,
    sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
) -> str:
    """Wrap little-endian PCM in a WAV container and return it base64-encoded."""
    return encode_wav_stream(
        [pcm],
        channels=channels,
        sample_rate_hz=sample_rate_hz,
        bits_per_sample=bits_per_sample,
    )


def encode_wav_stream(
    chunks: Iterable[bytes],
    *,
    channels: int = DEFAULT_CHANNELS,
    sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
    bits_per_sample: int = DEFAULT_BITS_PER_SAMPLE,
) -> str:
    encoder = WavEncoder(channels, sample_rate_hz, bits_per_sample)
    encoder.begin()
    for chunk in chunks:
        if chunk:
            encoder.write(chunk)
    return encoder.finalize()


def decode_wav(payload: bytes) -> WavInfo:
    try:
        with wave.open(io.BytesIO(payload), "rb") as reader:
            return WavInfo(
                channels=reader.getnchannels(),
                sample_rate_hz=reader.getframerate(),
                bits_per_sample=reader.getsampwidth() * 8,
                pcm=reader.readframes(reader.getnframes()),
            )
    except (wave.Error, EOFError) as exc:
        raise EncodingError(f"not a readable wav container: {exc}") from exc


def to_data_uri(payload_b64: str, mime_type: str = WAV_MIME_TYPE) -> str:
    return f"data:{mime_type};base64,{payload_b64}"


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """
    Split `data:<mime>;base64,<payload>` into (mime, raw bytes).

    The payload is everything after the first comma.
    """
    if not uri or not uri.startswith("data:") or "," not in uri:
        raise FlowValidationError("expected a base64 data URI", ["data_uri"])
    header, payload = uri.split(",", 1)
    mime_type = header[len("data:") :].split(";", 1)[0] or "application/octet-stream"
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FlowValidationError(f"invalid base64 payload: {exc}", ["data_uri"]) from exc


def is_silent_pcm(pcm: bytes) -> bool:
    return not pcm or not any(pcm)
