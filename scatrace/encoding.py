from dataclasses import dataclass
from enum import IntEnum
import logging
import numpy as np

logger = logging.getLogger(__name__)

_INT32_MIN = np.iinfo(np.int32).min
_INT32_MAX = np.iinfo(np.int32).max


class Encoding(IntEnum):
    """Sample coding classes, valued as the trace set header codes."""
    ILLEGAL = 0x00
    BYTE = 0x01
    SHORT = 0x02
    INT = 0x04
    FLOAT = 0x14

    @property
    def dtype(self):
        """Numpy dtype used to store samples with this coding."""
        if self is Encoding.ILLEGAL:
            raise ValueError("ILLEGAL coding has no storage dtype")
        return _DTYPES[self]

    @property
    def width(self):
        return 0 if self is Encoding.ILLEGAL else self.dtype.itemsize


_DTYPES = {
    Encoding.BYTE: np.dtype(np.int8),
    Encoding.SHORT: np.dtype(np.int16),
    Encoding.INT: np.dtype(np.int32),
    Encoding.FLOAT: np.dtype(np.float32),
}

# Widening order used when several traces must share one coding
_RANK = [Encoding.BYTE, Encoding.SHORT, Encoding.INT, Encoding.FLOAT]


@dataclass(frozen=True)
class SampleEnvelope:
    has_illegal_values: bool = False
    is_real: bool = False
    min: float = 0.0
    max: float = 0.0


def scan_envelope(samples):
    """
    Scan a float32 sample sequence once and return its envelope.

    min and max are seeded from 0, not from the first sample, so a trace
    that never crosses zero still has 0 inside its envelope. NaN values
    never move the bounds.

    A value is real when it differs from its truncation to a signed 32-bit
    integer, compared in float32. NaN, infinities and values beyond the
    int32 range (other than the saturated bounds themselves) are real.
    """
    samples = np.asarray(samples, dtype=np.float32)
    if samples.size == 0:
        return SampleEnvelope()

    comparable = samples[~np.isnan(samples)]
    if comparable.size:
        high = max(0.0, float(comparable.max()))
        low = min(0.0, float(comparable.min()))
    else:
        high = low = 0.0

    truncated = np.clip(np.trunc(samples.astype(np.float64)), _INT32_MIN, _INT32_MAX)
    is_real = bool(np.any(samples != truncated.astype(np.float32)))
    has_illegal_values = not bool(np.all(np.isfinite(samples)))

    logger.debug("Scanned %d samples: min=%s max=%s real=%s illegal=%s",
                 samples.size, low, high, is_real, has_illegal_values)
    return SampleEnvelope(
        has_illegal_values=has_illegal_values,
        is_real=is_real,
        min=low,
        max=high,
    )


def classify(envelope, force_float=False):
    """Map an envelope to a coding. Illegal values win over forced float coding."""
    if envelope.has_illegal_values:
        return Encoding.ILLEGAL
    if envelope.is_real or force_float:
        return Encoding.FLOAT
    if envelope.max > np.iinfo(np.int16).max or envelope.min < np.iinfo(np.int16).min:
        return Encoding.INT
    if envelope.max > np.iinfo(np.int8).max or envelope.min < np.iinfo(np.int8).min:
        return Encoding.SHORT
    return Encoding.BYTE


def uniform_coding(codings):
    """Smallest coding able to hold every given coding. Empty input gives BYTE."""
    result = Encoding.BYTE
    for coding in map(Encoding, codings):
        if coding is Encoding.ILLEGAL:
            return Encoding.ILLEGAL
        if _RANK.index(coding) > _RANK.index(result):
            result = coding
    return result
