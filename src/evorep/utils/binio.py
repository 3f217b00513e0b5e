"""
Binary I/O Module

Fixed-width, padding-free binary encoding used to persist networks, layers,
layer arguments and GP trees. Integers are stored as little-endian int32,
reals as little-endian float64 and booleans as single bytes.

Every writer returns the number of primitive elements written and every
reader returns the values read; callers sum the element counts so that a
save and the matching load can be verified against each other.
"""

import numpy as np

from evorep.errors import CorruptDataError

INT    = np.dtype('<i4')
DOUBLE = np.dtype('<f8')
BOOL   = np.dtype('u1')

def _write(fp, values, dtype: np.dtype) -> int:
    arr = np.asarray(values, dtype=dtype).ravel()
    fp.write(arr.tobytes())
    return arr.size

def _read(fp, count: int, dtype: np.dtype) -> np.ndarray:
    if count < 0:
        raise CorruptDataError(f"negative element count {count}")
    nbytes = count * dtype.itemsize
    data   = fp.read(nbytes)
    if len(data) != nbytes:
        raise CorruptDataError(f"unexpected end of file: wanted {nbytes} bytes, got {len(data)}")
    return np.frombuffer(data, dtype=dtype).copy()

def write_ints(fp, values) -> int:
    return _write(fp, values, INT)

def write_doubles(fp, values) -> int:
    return _write(fp, values, DOUBLE)

def write_bools(fp, values) -> int:
    return _write(fp, [1 if v else 0 for v in np.ravel(values)], BOOL)

def read_ints(fp, count: int) -> np.ndarray:
    return _read(fp, count, INT).astype(int)

def read_doubles(fp, count: int) -> np.ndarray:
    return _read(fp, count, DOUBLE).astype(float)

def read_bools(fp, count: int) -> np.ndarray:
    return _read(fp, count, BOOL).astype(bool)

def read_int(fp) -> int:
    """Read a single int32 and return it as a Python int."""
    return int(read_ints(fp, 1)[0])

def read_double(fp) -> float:
    """Read a single float64 and return it as a Python float."""
    return float(read_doubles(fp, 1)[0])
