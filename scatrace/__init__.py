"""
scatrace - Side Channel Analysis Traces

Single-trace model for side channel measurements: float32 samples with title,
data and named parameters, plus the adaptive choice of the smallest sample
coding (BYTE, SHORT, INT or FLOAT) and HDF5 trace sets stored in that coding.
"""

from .encoding import Encoding, SampleEnvelope, classify, scan_envelope, uniform_coding
from .parameters import (
    ParameterType, SerializationError, TraceParameter, ByteArrayParameter,
    ShortArrayParameter, IntegerArrayParameter, LongArrayParameter,
    FloatArrayParameter, DoubleArrayParameter, BooleanArrayParameter,
    StringParameter, serialize_parameters,
)
from .trace import Trace
from .traceset import TraceSet

__version__ = "1.0.0"
__author__ = "SCAM Contributors"
__email__ = "info@example.com"

__all__ = [
    'Trace', 'TraceSet', 'Encoding', 'SampleEnvelope', 'classify', 'scan_envelope',
    'uniform_coding', 'ParameterType', 'SerializationError', 'TraceParameter',
    'ByteArrayParameter', 'ShortArrayParameter', 'IntegerArrayParameter',
    'LongArrayParameter', 'FloatArrayParameter', 'DoubleArrayParameter',
    'BooleanArrayParameter', 'StringParameter', 'serialize_parameters',
]
