"""Process-wide token counting with a lazily initialised tiktoken encoder.

The encoder is resolved on first use through a fallback chain: the encoding
for ``ENCODING_MODEL``, then ``FALLBACK_ENCODING``, then a byte heuristic of
roughly four bytes per token. Failure to load an encoding is never fatal.
"""

import logging
import math
import threading

import tiktoken

logger = logging.getLogger(__name__)

ENCODING_MODEL = "gpt-4o-mini"
FALLBACK_ENCODING = "cl100k_base"
BYTES_PER_TOKEN = 4

TOKENIZER_MODES = ("tiktoken", "heuristic")

_lock = threading.Lock()
_mode = "tiktoken"
_encoder: tiktoken.Encoding | None = None
_initialized = False


def configure_tokenizer(mode: str) -> None:
    """Select the counting mode and drop any previously loaded encoder."""
    global _mode, _encoder, _initialized
    if mode not in TOKENIZER_MODES:
        raise ValueError(f"Unknown tokenizer mode: {mode!r}")
    with _lock:
        _mode = mode
        _encoder = None
        _initialized = False


def get_encoder() -> tiktoken.Encoding | None:
    """Return the shared encoder, loading it on first call."""
    global _encoder, _initialized
    if _initialized:
        return _encoder
    with _lock:
        if not _initialized:
            _encoder = _load_encoder() if _mode == "tiktoken" else None
            _initialized = True
    return _encoder


def _load_encoder() -> tiktoken.Encoding | None:
    try:
        return tiktoken.encoding_for_model(ENCODING_MODEL)
    except Exception as e:
        logger.debug("Encoding for %s unavailable: %s", ENCODING_MODEL, e)

    try:
        return tiktoken.get_encoding(FALLBACK_ENCODING)
    except Exception as e:
        logger.warning(
            "tiktoken encodings unavailable (%s); using byte-based estimate", e
        )
    return None


def estimate_tokens_from_bytes(size_bytes: int) -> int:
    return math.ceil(size_bytes / BYTES_PER_TOKEN)


def count_tokens(text: str) -> int:
    if not text:
        return 0
    encoder = get_encoder()
    if encoder is None:
        return estimate_tokens_from_bytes(len(text.encode("utf-8")))
    return len(encoder.encode(text, disallowed_special=()))
