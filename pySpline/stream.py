"""
Binary stream used by the trajectory ``read``/``write`` methods.

All values are little-endian: counts are int32, reals are float64.
"""
import io

import numpy as np
from numpy.polynomial import Polynomial

INT_DTYPE = np.dtype('<i4')
FLOAT_DTYPE = np.dtype('<f8')


class StreamError(IOError):
    """Raised when a stream is truncated or holds malformed data"""
    pass


class BinaryStream:
    """
    Bidirectional byte stream over any binary file object.

    Parameters
    ----------
    fileobj : file-like, optional
        Object supporting ``read``/``write`` of bytes. A fresh
        ``io.BytesIO`` is used when omitted.
    """

    def __init__(self, fileobj=None):
        self.fileobj = fileobj if fileobj is not None else io.BytesIO()

    def __repr__(self):
        return f"BinaryStream(fileobj={self.fileobj!r})"

    def getvalue(self):
        return self.fileobj.getvalue()

    def seek(self, offset, whence=io.SEEK_SET):
        return self.fileobj.seek(offset, whence)

    def rewind(self):
        self.fileobj.seek(0)

    def _read_exact(self, nbytes):
        data = self.fileobj.read(nbytes)
        if data is None or len(data) != nbytes:
            got = 0 if data is None else len(data)
            raise StreamError(f"Unexpected end of stream: wanted {nbytes} bytes, got {got}")
        return data

    def write_int(self, value):
        self.fileobj.write(np.array([value], dtype=INT_DTYPE).tobytes())

    def read_int(self):
        return int(np.frombuffer(self._read_exact(INT_DTYPE.itemsize), dtype=INT_DTYPE)[0])

    def read_count(self):
        n = self.read_int()
        if n < 0:
            raise StreamError(f"Negative element count {n} in stream")
        return n

    def write_float(self, value):
        self.fileobj.write(np.array([value], dtype=FLOAT_DTYPE).tobytes())

    def read_float(self):
        return float(np.frombuffer(self._read_exact(FLOAT_DTYPE.itemsize), dtype=FLOAT_DTYPE)[0])

    def write_floats(self, values):
        """Write a count followed by the values"""
        values = np.asarray(values, dtype=FLOAT_DTYPE)
        self.write_int(values.size)
        self.fileobj.write(values.tobytes())

    def read_floats(self):
        n = self.read_count()
        if n == 0:
            return []
        data = self._read_exact(n * FLOAT_DTYPE.itemsize)
        return np.frombuffer(data, dtype=FLOAT_DTYPE).tolist()

    def write_polynomial(self, poly):
        """A polynomial is stored as its ascending power-series coefficients"""
        off, scl = poly.mapparms()
        self.write_floats(poly.coef if off == 0 and scl == 1 else poly.convert().coef)

    def read_polynomial(self):
        coef = self.read_floats()
        if not coef:
            raise StreamError("Polynomial record without coefficients")
        return Polynomial(coef)
