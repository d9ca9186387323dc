"""
Test suite for the Trace class.

Tests core functionality including:
- Defensive copies and explicit ownership transfer
- Preferred coding and its cached envelope
- Data derived from named parameters
- Metadata accessors
"""

import unittest
import warnings
from unittest import mock
import numpy as np
from scatrace import (
    Encoding, Trace, SerializationError, ByteArrayParameter, ShortArrayParameter,
    StringParameter,
)
from scatrace import encoding


class FixedBytes:
    def __init__(self, payload):
        self.payload = payload

    def serialize(self):
        return self.payload


class TestTraceConstruction(unittest.TestCase):
    """Test trace creation and ownership of samples."""

    def test_defaults(self):
        trace = Trace([1, 2, 3])
        self.assertIsNone(trace.title)
        self.assertIsNone(trace.data)
        self.assertIsNone(trace.parameters)
        self.assertEqual(trace.sample_frequency, 1.0)
        self.assertEqual(trace.shifted, 0)
        self.assertIsNone(trace.owning_set)
        self.assertEqual(trace.samples.dtype, np.float32)
        self.assertEqual(len(trace), 3)
        self.assertEqual(trace.number_of_samples, 3)

    def test_constructor_copies_samples(self):
        samples = np.array([1, 2, 3], dtype=np.float32)
        trace = Trace(samples, title="copy")
        samples[0] = 100
        self.assertEqual(trace.samples[0], 1)

    def test_create_copies_samples(self):
        samples = np.array([1, 2, 3], dtype=np.float32)
        trace = Trace.create(samples, title="created")
        samples[0] = 100
        self.assertEqual(trace.samples[0], 1)
        self.assertEqual(trace.title, "created")

    def test_wrap_takes_ownership(self):
        samples = np.array([1, 2, 3], dtype=np.float32)
        trace = Trace.wrap(samples)
        self.assertIs(trace.samples, samples)

    def test_rejects_multidimensional_samples(self):
        with self.assertRaises(ValueError):
            Trace(np.zeros((2, 3)))

    def test_rejects_data_and_parameters(self):
        with self.assertRaises(ValueError):
            Trace([1], data=b"\x01", parameters={"a": FixedBytes(b"\x02")})

    def test_rejects_non_positive_frequency(self):
        with self.assertRaises(ValueError):
            Trace([1], sample_frequency=0)
        trace = Trace([1])
        with self.assertRaises(ValueError):
            trace.sample_frequency = -5


class TestPreferredCoding(unittest.TestCase):
    """Test the coding decision as seen through a trace."""

    def test_concrete_scenarios(self):
        self.assertEqual(Trace([0, 1, 2, 127]).preferred_coding, Encoding.BYTE)
        self.assertEqual(Trace([0, 1, 200]).preferred_coding, Encoding.SHORT)
        self.assertEqual(Trace([0, 40000]).preferred_coding, Encoding.INT)
        self.assertEqual(Trace([0.5, 1.0]).preferred_coding, Encoding.FLOAT)
        self.assertEqual(Trace([1.0, np.nan]).preferred_coding, Encoding.ILLEGAL)

    def test_empty_trace_is_byte(self):
        self.assertEqual(Trace([]).preferred_coding, Encoding.BYTE)

    def test_coding_is_an_integer(self):
        self.assertEqual(Trace([0, 1, 200]).preferred_coding, 0x02)

    def test_force_float(self):
        trace = Trace([1, 2, 3])
        self.assertEqual(trace.preferred_coding, Encoding.BYTE)
        trace.force_float_coding()
        self.assertEqual(trace.preferred_coding, Encoding.FLOAT)

    def test_force_float_does_not_hide_illegal_values(self):
        trace = Trace([1.0, np.inf])
        trace.force_float_coding()
        self.assertEqual(trace.preferred_coding, Encoding.ILLEGAL)

    def test_scan_runs_once(self):
        trace = Trace([0, 1, 200])
        with mock.patch('scatrace.trace.scan_envelope', wraps=encoding.scan_envelope) as scan:
            first = trace.preferred_coding
            second = trace.preferred_coding
        self.assertEqual(first, second)
        self.assertEqual(scan.call_count, 1)

    def test_no_scan_at_construction(self):
        with mock.patch('scatrace.trace.scan_envelope', wraps=encoding.scan_envelope) as scan:
            Trace([1, 2, 3])
        scan.assert_not_called()

    def test_stale_until_invalidated(self):
        trace = Trace([1, 2, 3])
        self.assertEqual(trace.preferred_coding, Encoding.BYTE)

        trace.samples[0] = 1000
        self.assertEqual(trace.preferred_coding, Encoding.BYTE)

        trace.invalidate_coding()
        self.assertEqual(trace.preferred_coding, Encoding.SHORT)
        self.assertEqual(trace.envelope.max, 1000)


class TestTraceData(unittest.TestCase):
    """Test raw data and parameter derived data."""

    def test_data_from_parameters(self):
        trace = Trace([1, 2], parameters={"a": FixedBytes(b"\x01"), "b": FixedBytes(b"\x02\x03")})
        self.assertEqual(trace.data, b"\x01\x02\x03")

    def test_typed_parameters(self):
        parameters = {
            "input": ByteArrayParameter(bytes(range(16))),
            "cipher": StringParameter("AES"),
            "round": ShortArrayParameter([1]),
        }
        trace = Trace.create([1, 2, 3], title="aes", parameters=parameters)
        self.assertEqual(trace.data, bytes(range(16)) + b"AES" + b"\x01\x00")
        self.assertEqual(trace.get_parameter("cipher"), StringParameter("AES"))

    def test_parameter_lookup_unknown(self):
        trace = Trace([1], parameters={"a": FixedBytes(b"\x01")})
        self.assertIsNone(trace.get_parameter("missing"))
        self.assertIsNone(Trace([1]).get_parameter("a"))

    def test_parameter_mapping_is_copied(self):
        parameters = {"a": FixedBytes(b"\x01")}
        trace = Trace([1], parameters=parameters)
        parameters["b"] = FixedBytes(b"\x02")
        self.assertIsNone(trace.get_parameter("b"))
        trace.parameters["c"] = FixedBytes(b"\x03")
        self.assertIsNone(trace.get_parameter("c"))

    def test_failed_serialization_produces_no_trace(self):
        with self.assertRaises(SerializationError):
            Trace([1], parameters={"a": FixedBytes(b"\x01"), "b": ShortArrayParameter([99999])})
        with self.assertRaises(SerializationError):
            Trace([1], parameters={"s": StringParameter(5)})

    def test_raw_data_is_deprecated(self):
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            trace = Trace([1], title="legacy", data=bytearray(b"\x0a\x0b"))
            self.assertEqual(len(w), 1)
            self.assertTrue(issubclass(w[0].category, DeprecationWarning))
        self.assertEqual(trace.data, b"\x0a\x0b")
        self.assertIsInstance(trace.data, bytes)

    def test_data_setter_copies(self):
        trace = Trace([1])
        blob = bytearray(b"\x01\x02")
        trace.data = blob
        blob[0] = 0xFF
        self.assertEqual(trace.data, b"\x01\x02")
        trace.data = None
        self.assertIsNone(trace.data)

    def test_data_string(self):
        trace = Trace([1])
        self.assertEqual(trace.data_string, "")
        trace.data = b"\x01\x02\xab"
        self.assertEqual(trace.data_string, "102ab")
        trace.data = b"\xff"
        self.assertEqual(trace.data_string, "-1")


class TestTraceMetadata(unittest.TestCase):
    """Test title, frequency and shift bookkeeping."""

    def test_setters(self):
        trace = Trace([1, 2, 3], title="first", sample_frequency=2e9)
        self.assertEqual(trace.sample_frequency, 2e9)

        trace.title = "second"
        trace.sample_frequency = 1e6
        trace.shifted = 4

        self.assertEqual(trace.title, "second")
        self.assertEqual(trace.sample_frequency, 1e6)
        self.assertEqual(trace.shifted, 4)
        np.testing.assert_array_equal(trace.samples, [1, 2, 3])

    def test_repr(self):
        self.assertIn("number_of_samples=3", repr(Trace([1, 2, 3], title="t")))


if __name__ == "__main__":
    unittest.main()
