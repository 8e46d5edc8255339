"""
Core types for the player cipher subsystem.

Two kinds of cipher share these types:
  - Advanced: transform functions extracted from the player script and executed
  - Basic:    a fixed, guessed list of array operations (fallback only)
"""
from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, TYPE_CHECKING

from .errors import NoSupportedFormat

if TYPE_CHECKING:
    from .advanced import AdvancedSignatureCipher
    from .operations import SignatureCipher

DEFAULT_SIGNATURE_KEY = "sig"

# ──────────────────────────────
#  Extracted script fragments
# ──────────────────────────────
@dataclass(frozen=True)
class ExtractedCipher:
    timestamp: str                    # signatureTimestamp / sts value
    global_vars: str                  # var X = "...".split(...) the transforms index into
    sig_actions: str                  # helper object with the three array primitives
    sig_function: str                 # signature entry point
    n_function: str                   # n entry point, short-circuit guard stripped
    raw_script: str = field(default="", repr=False)

# ──────────────────────────────
#  Stream format (input, read-only)
# ──────────────────────────────
class FormatInfo(Enum):
    WEBM_OPUS = ("audio/webm", "opus")
    WEBM_VORBIS = ("audio/webm", "vorbis")
    MP4_AAC_LC = ("audio/mp4", "mp4a.40.2")
    WEBM_VIDEO_VORBIS = ("video/webm", "vorbis")
    MP4_VIDEO_AAC_LC = ("video/mp4", "mp4a.40.2")

    @property
    def mime_type(self) -> str:
        return self.value[0]

    @property
    def codec(self) -> str:
        return self.value[1]


@dataclass
class StreamFormat:
    url: str
    signature: Optional[str] = None
    signature_key: Optional[str] = None   # query key for the deciphered signature
    n_parameter: Optional[str] = None
    # descriptive fields, untouched by the ciphers
    itag: int = 0
    content_type: str = ""
    bitrate: int = 0
    content_length: int = 0
    audio_channels: int = 0
    info: Optional[FormatInfo] = None
    is_default_audio_track: bool = True
    is_drc: bool = False

    @property
    def effective_signature_key(self) -> str:
        return self.signature_key or DEFAULT_SIGNATURE_KEY


@dataclass
class TrackFormats:
    formats: list[StreamFormat] = field(default_factory=list)
    player_script_url: str = ""

    def get_best_format(self) -> StreamFormat:
        """Highest-bitrate default audio track with a known container."""
        best: Optional[StreamFormat] = None
        for fmt in self.formats:
            if not fmt.is_default_audio_track or fmt.info is None:
                continue
            if best is None or fmt.bitrate > best.bitrate:
                best = fmt

        if best is None:
            available = ", ".join(f.content_type for f in self.formats)
            raise NoSupportedFormat(
                f"No supported audio streams available, available types: {available}")
        return best

# ──────────────────────────────
#  Cache entry + stats
# ──────────────────────────────
@dataclass
class CachedPlayerScript:
    script_content: str
    cipher: SignatureCipher
    advanced_cipher: Optional[AdvancedSignatureCipher] = None
    extracted_cipher: Optional[ExtractedCipher] = None
    cached_at: float = field(default_factory=time.monotonic)

    def age(self, now: Optional[float] = None) -> float:
        return (time.monotonic() if now is None else now) - self.cached_at

    def is_fresh(self, ttl: float, now: Optional[float] = None) -> bool:
        return self.age(now) < ttl


@dataclass(frozen=True)
class CacheStats:
    total_entries: int = 0
    advanced_cipher_entries: int = 0
    basic_cipher_entries: int = 0
    expired_entries: int = 0

    def to_dict(self):
        return {
            "total_entries": self.total_entries,
            "advanced_cipher_entries": self.advanced_cipher_entries,
            "basic_cipher_entries": self.basic_cipher_entries,
            "expired_entries": self.expired_entries,
        }
