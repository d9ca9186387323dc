import logging
import warnings
import numpy as np

from .encoding import Encoding, classify, scan_envelope
from .parameters import serialize_parameters

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_FREQUENCY = 1.0


class Trace:
    """
    One consecutive array of samples with its title, data and parameters.

    The constructor copies the samples, the data and the parameter mapping.
    Use ``Trace.wrap`` to hand over an existing float32 array without a copy;
    the trace then owns that array and the caller must not modify it.

    Args:
        samples: 1-D sequence of sample values, stored as float32
        title: Optional title for this trace
        data: Raw supplementary (crypto) data. Deprecated, pass parameters instead
        parameters: Mapping of parameter name to TraceParameter; their
            serialized forms, in mapping order, become the trace data
        sample_frequency: Frequency at which the samples were acquired
        shifted: Number of samples this trace is shifted (bookkeeping only)

    Raises:
        ValueError: If both data and parameters are given, samples are not 1-D
            or the sample frequency is not positive
        SerializationError: If a parameter cannot be serialized
    """

    def __init__(self, samples, title=None, data=None, parameters=None,
                 sample_frequency=DEFAULT_SAMPLE_FREQUENCY, shifted=0):
        self._init(np.array(samples, dtype=np.float32), title, data, parameters,
                   sample_frequency, shifted)

    @classmethod
    def wrap(cls, samples, title=None, data=None, parameters=None,
             sample_frequency=DEFAULT_SAMPLE_FREQUENCY, shifted=0):
        """
        Create a trace that takes ownership of ``samples`` without copying.

        ``samples`` must already be a float32 numpy array; anything else is
        converted (and therefore copied) as in the regular constructor.
        """
        trace = cls.__new__(cls)
        trace._init(np.asarray(samples, dtype=np.float32), title, data, parameters,
                    sample_frequency, shifted)
        return trace

    @classmethod
    def create(cls, samples, title=None, parameters=None, sample_frequency=DEFAULT_SAMPLE_FREQUENCY):
        """Create a trace from samples and named parameters (copies the samples)."""
        return cls(samples, title=title, parameters=parameters, sample_frequency=sample_frequency)

    def _init(self, samples, title, data, parameters, sample_frequency, shifted):
        if samples.ndim != 1:
            raise ValueError(f"Samples must be 1-D, got shape {samples.shape}")
        if data is not None and parameters is not None:
            raise ValueError("Pass either raw data or parameters, not both")

        self._samples = samples
        self._envelope = None
        self._force_float = False
        self._parameters = None
        self._data = None
        self.title = title
        self.shifted = int(shifted)
        self.sample_frequency = sample_frequency
        self.owning_set = None

        if parameters is not None:
            # Serialize before taking the mapping so a failure leaves nothing behind
            self._data = serialize_parameters(parameters)
            self._parameters = dict(parameters)
        elif data is not None:
            warnings.warn("Creating traces with raw data is deprecated, use parameters instead",
                          DeprecationWarning, stacklevel=3)
            self._data = bytes(data)

    # ============ Samples and coding ============

    @property
    def samples(self):
        """The sample array, without shift corrections. Do not modify in place."""
        return self._samples

    @property
    def number_of_samples(self):
        return self._samples.shape[0]

    def __len__(self):
        return self.number_of_samples

    def force_float_coding(self):
        """Always report FLOAT coding, unless the samples hold NaN or infinities."""
        self._force_float = True

    def invalidate_coding(self):
        """Drop the cached envelope; call after modifying the samples in place."""
        self._envelope = None

    @property
    def envelope(self):
        if self._envelope is None:
            logger.debug("Computing sample envelope for trace '%s'", self.title)
            self._envelope = scan_envelope(self._samples)
        return self._envelope

    @property
    def preferred_coding(self) -> Encoding:
        """Smallest coding that holds every sample of this trace."""
        return classify(self.envelope, force_float=self._force_float)

    # ============ Metadata ============

    @property
    def sample_frequency(self):
        return self._sample_frequency

    @sample_frequency.setter
    def sample_frequency(self, value):
        value = float(value)
        if not value > 0:
            raise ValueError(f"Sample frequency must be positive, got {value}")
        self._sample_frequency = value

    @property
    def data(self):
        """Supplementary (crypto) data of this trace, or None."""
        return self._data

    @data.setter
    def data(self, value):
        self._data = None if value is None else bytes(value)

    @property
    def data_string(self):
        """Data as a hexadecimal string, read as a signed big-endian integer."""
        if not self._data:
            return ""
        return format(int.from_bytes(self._data, 'big', signed=True), 'x')

    @property
    def parameters(self):
        """Copy of the named parameters, or None when the trace was built without them."""
        return None if self._parameters is None else dict(self._parameters)

    def get_parameter(self, name):
        """Parameter stored under ``name``, or None if there is none."""
        if self._parameters is None:
            return None
        return self._parameters.get(name)

    def __repr__(self):
        return (f"Trace(title={self.title!r}, number_of_samples={self.number_of_samples}, "
                f"sample_frequency={self.sample_frequency}, shifted={self.shifted})")
