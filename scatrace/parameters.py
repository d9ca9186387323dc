"""
Typed trace parameters and their serialization into a trace's data blob.

Every parameter exposes ``serialize() -> bytes``. The byte form is
little-endian at the parameter type's element width; a parameter does not
write its own length, the trace set's parameter definitions carry it.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar
import io
import logging
import numpy as np

logger = logging.getLogger(__name__)


class SerializationError(IOError):
    """A trace parameter could not be turned into bytes."""


class ParameterType(IntEnum):
    BYTE = 0x01
    SHORT = 0x02
    INT = 0x04
    FLOAT = 0x14
    LONG = 0x08
    DOUBLE = 0x18
    STRING = 0x20
    BOOL = 0x31

    @property
    def width(self):
        """Size in bytes of one element of this type."""
        return _WIDTHS[self]


_WIDTHS = {
    ParameterType.BYTE: 1,
    ParameterType.SHORT: 2,
    ParameterType.INT: 4,
    ParameterType.FLOAT: 4,
    ParameterType.LONG: 8,
    ParameterType.DOUBLE: 8,
    ParameterType.STRING: 1,
    ParameterType.BOOL: 1,
}


@dataclass(eq=False)
class TraceParameter:
    value: object
    type: ClassVar[ParameterType]

    def serialize(self) -> bytes:
        raise NotImplementedError

    def __len__(self):
        return len(self.value)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return np.array_equal(self.value, other.value)


@dataclass(eq=False)
class _ArrayParameter(TraceParameter):
    dtype: ClassVar[str]
    bounds: ClassVar[tuple] = None

    def __post_init__(self):
        if isinstance(self.value, (bytes, bytearray, memoryview)):
            self.value = np.frombuffer(bytes(self.value), dtype=np.uint8).copy()
        else:
            self.value = np.atleast_1d(np.array(self.value))
        if self.value.ndim != 1:
            raise ValueError(f"{type(self).__name__} expects a 1-D value, got shape {self.value.shape}")

    def _check_bounds(self):
        if self.bounds is None or self.value.size == 0:
            return
        if self.value.dtype.kind in "fc" and not np.all(self.value == np.trunc(self.value)):
            raise SerializationError(f"{type(self).__name__} values must be integral, got {self.value}")
        low, high = self.bounds
        if self.value.min() < low or self.value.max() > high:
            raise SerializationError(
                f"{type(self).__name__} values must lie in [{low}, {high}], "
                f"got [{self.value.min()}, {self.value.max()}]"
            )

    def serialize(self) -> bytes:
        self._check_bounds()
        return self.value.astype(self.dtype).tobytes()


@dataclass(eq=False)
class ByteArrayParameter(_ArrayParameter):
    """Raw bytes. Accepts signed (-128..127) and unsigned (0..255) element values."""
    type: ClassVar[ParameterType] = ParameterType.BYTE
    dtype: ClassVar[str] = '|u1'
    bounds: ClassVar[tuple] = (-128, 255)

    def serialize(self) -> bytes:
        self._check_bounds()
        return (self.value.astype(np.int16) & 0xFF).astype(np.uint8).tobytes()


@dataclass(eq=False)
class ShortArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.SHORT
    dtype: ClassVar[str] = '<i2'
    bounds: ClassVar[tuple] = (np.iinfo(np.int16).min, np.iinfo(np.int16).max)


@dataclass(eq=False)
class IntegerArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.INT
    dtype: ClassVar[str] = '<i4'
    bounds: ClassVar[tuple] = (np.iinfo(np.int32).min, np.iinfo(np.int32).max)


@dataclass(eq=False)
class LongArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.LONG
    dtype: ClassVar[str] = '<i8'
    bounds: ClassVar[tuple] = (np.iinfo(np.int64).min, np.iinfo(np.int64).max)


@dataclass(eq=False)
class FloatArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.FLOAT
    dtype: ClassVar[str] = '<f4'

    def _check_bounds(self):
        finite = self.value[np.isfinite(self.value)]
        if finite.size and np.abs(finite).max() > np.finfo(np.float32).max:
            raise SerializationError(f"FloatArrayParameter value {np.abs(finite).max()} overflows float32")


@dataclass(eq=False)
class DoubleArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.DOUBLE
    dtype: ClassVar[str] = '<f8'


@dataclass(eq=False)
class BooleanArrayParameter(_ArrayParameter):
    type: ClassVar[ParameterType] = ParameterType.BOOL
    dtype: ClassVar[str] = '|u1'

    def __post_init__(self):
        super().__post_init__()
        self.value = self.value.astype(bool)


@dataclass(eq=False)
class StringParameter(TraceParameter):
    type: ClassVar[ParameterType] = ParameterType.STRING

    def __len__(self):
        return len(self.serialize())

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.value == other.value

    def serialize(self) -> bytes:
        if not isinstance(self.value, str):
            raise SerializationError(f"StringParameter expects str, got {type(self.value).__name__}")
        try:
            return self.value.encode('utf-8')
        except UnicodeEncodeError as exc:
            raise SerializationError(f"String parameter is not UTF-8 encodable: {exc}") from exc


def serialize_parameters(parameters):
    """
    Concatenate the serialized form of every parameter, in mapping order.

    Args:
        parameters: Mapping from parameter name to an object with ``serialize()``

    Returns:
        The combined bytes. Per-parameter lengths are not recorded.

    Raises:
        SerializationError: If any parameter fails; nothing partial is returned.
    """
    buffer = io.BytesIO()
    for name, parameter in parameters.items():
        try:
            buffer.write(parameter.serialize())
        except Exception as exc:
            raise SerializationError(f"Parameter '{name}' could not be serialized: {exc}") from exc
    logger.debug("Serialized %d parameters into %d bytes", len(parameters), buffer.tell())
    return buffer.getvalue()
