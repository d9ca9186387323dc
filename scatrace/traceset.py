from dataclasses import dataclass, field
from enum import Enum
from .encoding import Encoding, uniform_coding
from .trace import Trace
import h5py
import logging
import numpy as np
import os
import uuid
import warnings

logger = logging.getLogger(__name__)

_RESERVED_ATTRS = ('uid', 'trace_count', 'sample_coding', 'number_of_samples')


class TraceSetMode(Enum):
    MEMORY = "memory"      # In-memory only
    READING = "reading"    # Lazy reading from HDF5


@dataclass
class TraceSet:
    name: str
    traces: list[Trace] = field(default_factory=list)
    metadata: dict[str, any] = field(default_factory=dict)
    uid: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Internal state
    _mode: TraceSetMode = field(default=TraceSetMode.MEMORY, init=False)
    _h5file: any = field(default=None, init=False)
    _h5group: any = field(default=None, init=False)
    _source: str = field(default=None, init=False)
    _number_of_samples: int = field(default=None, init=False)

    def __post_init__(self):
        """Validate initial traces and claim them for this set."""
        initial, self.traces = self.traces, []
        for trace in initial:
            self.add_trace(trace)

    # ============ Membership ============

    def add_trace(self, trace):
        """Add a trace. All traces of a set hold the same number of samples."""
        if self._mode == TraceSetMode.READING:
            raise RuntimeError("Cannot add traces in READING mode")

        if self._number_of_samples is None:
            self._number_of_samples = trace.number_of_samples
        elif trace.number_of_samples != self._number_of_samples:
            raise ValueError(
                f"Trace has {trace.number_of_samples} samples, expected {self._number_of_samples}"
            )

        trace.owning_set = self.uid
        self.traces.append(trace)

    def remove_trace(self, index):
        """Remove trace (only in MEMORY mode)."""
        if self._mode != TraceSetMode.MEMORY:
            raise RuntimeError(f"Cannot remove traces in {self._mode} mode")

        if 0 <= index < len(self.traces):
            trace = self.traces.pop(index)
            trace.owning_set = None
            if not self.traces:
                self._number_of_samples = None
            return trace
        raise IndexError(f"Index {index} out of range")

    @property
    def number_of_samples(self):
        return self._number_of_samples or 0

    @property
    def preferred_coding(self) -> Encoding:
        """One coding able to store the samples of every trace in the set."""
        if self._mode == TraceSetMode.READING:
            return Encoding(int(self._h5group.attrs['sample_coding']))
        return uniform_coding(trace.preferred_coding for trace in self.traces)

    # ============ Unified Interface ============

    def __iter__(self):
        """Iterate over traces - lazy in READ mode."""
        if self._mode == TraceSetMode.READING:
            for i in range(len(self)):
                yield self._read_trace(i)
        else:
            yield from self.traces

    def __len__(self):
        if self._mode == TraceSetMode.READING:
            return int(self._h5group.attrs.get('trace_count', 0))
        return len(self.traces)

    def __getitem__(self, index):
        """Get trace by index - lazy in READ mode."""
        if self._mode == TraceSetMode.READING:
            if isinstance(index, slice):
                start, stop, step = index.indices(len(self))
                return [self._read_trace(i) for i in range(start, stop, step)]
            if index < 0:
                index += len(self)
            if not 0 <= index < len(self):
                raise IndexError(f"Index {index} out of range")
            return self._read_trace(index)
        return self.traces[index]

    def to_matrix(self, dtype=None):
        """Matrix of all samples, one row per trace, in the set's coding unless dtype is given."""
        count = len(self)
        if count == 0:
            return np.array([])
        if dtype is None:
            dtype = self._storage_dtype()

        if self._mode == TraceSetMode.READING:
            matrix = np.empty((count, self.number_of_samples), dtype=dtype)
            # Load in 1000-trace chunks
            for i in range(0, count, 1000):
                end = min(i + 1000, count)
                matrix[i:end] = self._h5group['samples'][i:end]
            return matrix
        return np.array([t.samples for t in self.traces]).astype(dtype)

    # ============ HDF5 persistence ============

    def save_hdf5(self, filename, overwrite_ok=False, chunk_size=100):
        """
        Write this set to an HDF5 file as one group named after the set.

        Samples are stored with the set's uniform coding, so integer traces
        take 1, 2 or 4 bytes per sample instead of 4-byte floats.

        Args:
            filename: Path of the HDF5 file
            overwrite_ok: Replace an existing group of the same name
            chunk_size: HDF5 chunk size (in traces) for the samples dataset

        Raises:
            ValueError: If any trace holds NaN or infinite samples
        """
        if self._mode != TraceSetMode.MEMORY:
            raise RuntimeError(f"Cannot save in {self._mode} mode")

        coding = self.preferred_coding
        if coding is Encoding.ILLEGAL:
            raise ValueError(f"Trace set '{self.name}' contains NaN or infinite samples")

        with h5py.File(filename, 'a' if os.path.exists(filename) else 'w') as f:
            if self.name in f:
                if not overwrite_ok:
                    warnings.warn(f"Trace set '{self.name}' already exists in '{filename}'. "
                                  f"Skipping to avoid data loss. Use overwrite_ok=True.", UserWarning)
                    return False
                del f[self.name]

            group = f.create_group(self.name)
            try:
                for key, value in self.metadata.items():
                    if key in _RESERVED_ATTRS:
                        warnings.warn(f"Metadata key '{key}' of trace set '{self.name}' is reserved. "
                                      f"Skipping it.", UserWarning)
                    elif isinstance(value, (str, int, float)):
                        group.attrs[key] = value
                group.attrs['uid'] = self.uid
                group.attrs['trace_count'] = len(self.traces)
                group.attrs['sample_coding'] = int(coding)
                group.attrs['number_of_samples'] = self.number_of_samples

                if self.traces:
                    self._write_traces(group, coding, chunk_size)
            except Exception:
                # Never leave a half-written set behind
                del f[self.name]
                raise

        logger.debug("Saved %d traces of '%s' to %s as %s", len(self.traces), self.name, filename, coding.name)
        return True

    def open_for_reading(self, filename=None):
        """Open set for lazy reading from HDF5."""
        if self._mode != TraceSetMode.MEMORY:
            raise RuntimeError(f"Cannot open for reading in {self._mode} mode")

        if filename is None and self._source:
            filename = self._source
        elif filename is None:
            raise ValueError("No source available")

        self._h5file = h5py.File(filename, 'r')
        if self.name not in self._h5file:
            self._h5file.close()
            self._h5file = None
            raise KeyError(f"Trace set '{self.name}' not found in '{filename}'")

        self._h5group = self._h5file[self.name]
        self._mode = TraceSetMode.READING
        self._source = filename
        self.uid = str(self._h5group.attrs.get('uid', self.uid))

        # Clear memory traces for lazy-only access
        self.traces = []
        self._number_of_samples = int(self._h5group.attrs.get('number_of_samples', 0))

        logger.debug("Opened '%s' in %s with %d traces", self.name, filename, len(self))
        return self

    def close_reading(self):
        """Close read mode."""
        if self._mode == TraceSetMode.READING:
            self._h5file.close()
            self._h5file = None
            self._h5group = None
            self._mode = TraceSetMode.MEMORY
            self._number_of_samples = None
        return self

    @classmethod
    def load_hdf5(cls, filename, name):
        """Open the named set of an HDF5 file for lazy reading."""
        trace_set = cls(name=name)
        trace_set.open_for_reading(filename)
        for attr_name, value in trace_set._h5group.attrs.items():
            if attr_name not in _RESERVED_ATTRS:
                trace_set.metadata[attr_name] = value
        return trace_set

    # ============ Internal Helpers ============

    def _storage_dtype(self):
        coding = self.preferred_coding
        return np.float32 if coding is Encoding.ILLEGAL else coding.dtype

    def _write_traces(self, group, coding, chunk_size):
        count = len(self.traces)
        group.create_dataset(
            'samples',
            data=np.array([t.samples for t in self.traces]).astype(coding.dtype),
            chunks=(min(chunk_size, count), self.number_of_samples) if self.number_of_samples else None,
        )
        group.create_dataset('titles', data=[t.title or "" for t in self.traces],
                             dtype=h5py.string_dtype())
        data = group.create_dataset('data', shape=(count,), dtype=h5py.vlen_dtype(np.uint8))
        for i, trace in enumerate(self.traces):
            if trace.data:
                data[i] = np.frombuffer(trace.data, dtype=np.uint8)
        group.create_dataset('sample_frequencies', data=[t.sample_frequency for t in self.traces],
                             dtype=np.float32)
        group.create_dataset('shifts', data=[t.shifted for t in self.traces], dtype=np.int32)

    def _read_trace(self, index):
        """Read single trace from HDF5."""
        title = self._h5group['titles'][index].decode()
        trace = Trace.wrap(
            self._h5group['samples'][index].astype(np.float32),
            title=title or None,
            sample_frequency=float(self._h5group['sample_frequencies'][index]),
            shifted=int(self._h5group['shifts'][index]),
        )
        data = self._h5group['data'][index]
        if len(data):
            trace.data = data.tobytes()
        trace.owning_set = self.uid
        return trace
