"""
Binary record format, read failure handling and whole-file save/load.
"""
import io
import os
import tempfile
import unittest

import numpy as np
from numpy.polynomial import Polynomial

from pySpline import (PiecewisePolynomial, PiecewisePolynomialND, BinaryStream, StreamError,
                      piecewise_linear, piecewise_linear_nd,
                      save_trajectory_state, load_trajectory_state)


def sample_trajectory():
    return PiecewisePolynomial([Polynomial([1.0, 2.0, 3.0]), Polynomial([6.0, -1.0])],
                               [0.0, 1.0, 3.0], relative=True)


class TestBinaryStream(unittest.TestCase):
    def test_values(self):
        stream = BinaryStream()
        stream.write_int(-3)
        stream.write_float(2.5)
        stream.write_floats([1.0, 2.0])
        stream.write_polynomial(Polynomial([0.0, 1.0]))
        stream.rewind()
        self.assertEqual(stream.read_int(), -3)
        self.assertEqual(stream.read_float(), 2.5)
        self.assertEqual(stream.read_floats(), [1.0, 2.0])
        self.assertEqual(stream.read_polynomial(), Polynomial([0.0, 1.0]))

    def test_truncated(self):
        stream = BinaryStream(io.BytesIO(b'\x01\x00'))
        with self.assertRaises(StreamError):
            stream.read_int()

    def test_negative_count(self):
        stream = BinaryStream()
        stream.write_int(-1)
        stream.rewind()
        with self.assertRaises(StreamError):
            stream.read_floats()


class TestReadWrite(unittest.TestCase):
    def test_round_trip(self):
        pp = sample_trajectory()
        pp.time_shift(0.5)
        stream = BinaryStream()
        self.assertTrue(pp.write(stream))
        stream.rewind()
        loaded = PiecewisePolynomial()
        self.assertTrue(loaded.read(stream))
        self.assertEqual(loaded.times, pp.times)
        self.assertEqual(loaded.time_shifts, pp.time_shifts)
        for a, b in zip(loaded.segments, pp.segments):
            np.testing.assert_array_equal(a.coef, b.coef)
        self.assertEqual(loaded, pp)

    def test_layout(self):
        stream = BinaryStream()
        PiecewisePolynomial([[2.0]], [0.0, 1.0]).write(stream)
        data = stream.getvalue()
        # count, coefficient count + 1 coefficient, shift count + 1 shift, time count + 2 times
        self.assertEqual(len(data), 4 + (4 + 8) + (4 + 8) + (4 + 16))
        self.assertEqual(np.frombuffer(data[:4], dtype='<i4')[0], 1)

    def test_empty_round_trip(self):
        stream = BinaryStream()
        self.assertTrue(PiecewisePolynomial().write(stream))
        stream.rewind()
        loaded = sample_trajectory()
        self.assertTrue(loaded.read(stream))
        self.assertTrue(loaded.is_empty())

    def test_truncated_leaves_object_unchanged(self):
        stream = BinaryStream()
        sample_trajectory().write(stream)
        data = stream.getvalue()
        target = piecewise_linear([0.0, 1.0], [0.0, 1.0])
        before = target.copy()
        for cut in (0, 3, 10, len(data) - 1):
            self.assertFalse(target.read(BinaryStream(io.BytesIO(data[:cut]))))
            self.assertEqual(target, before)

    def test_malformed_records(self):
        # breakpoints not increasing
        stream = BinaryStream()
        stream.write_int(1)
        stream.write_polynomial(Polynomial([1.0]))
        stream.write_floats([0.0])
        stream.write_floats([1.0, 0.5])
        stream.rewind()
        self.assertFalse(PiecewisePolynomial().read(stream))

        # wrong number of shifts
        stream = BinaryStream()
        stream.write_int(1)
        stream.write_polynomial(Polynomial([1.0]))
        stream.write_floats([0.0, 0.0])
        stream.write_floats([0.0, 1.0])
        stream.rewind()
        self.assertFalse(PiecewisePolynomial().read(stream))


class TestSaveUtils(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def path(self, name):
        return os.path.join(self.tmpdir.name, name)

    def test_scalar_compressed(self):
        pp = sample_trajectory()
        filename = self.path("traj.bin")
        self.assertTrue(save_trajectory_state(pp, filename))
        loaded = PiecewisePolynomial()
        self.assertTrue(load_trajectory_state(loaded, filename))
        self.assertEqual(loaded, pp)

    def test_nd_uncompressed(self):
        traj = piecewise_linear_nd([[0.0, 1.0], [1.0, 2.0]], [0.0, 1.0])
        filename = self.path("traj_nd.bin")
        self.assertTrue(save_trajectory_state(traj, filename, compress=False))
        loaded = PiecewisePolynomialND()
        self.assertTrue(load_trajectory_state(loaded, filename))
        self.assertEqual(loaded, traj)

    def test_wrong_kind(self):
        filename = self.path("traj.bin")
        save_trajectory_state(sample_trajectory(), filename)
        self.assertFalse(load_trajectory_state(PiecewisePolynomialND(), filename))

    def test_missing_file(self):
        self.assertFalse(load_trajectory_state(PiecewisePolynomial(), self.path("missing.bin")))

    def test_corrupted_file(self):
        filename = self.path("bad.bin")
        with open(filename, 'wb') as f:
            f.write(b'PPL1Z' + b'not zlib data')
        target = sample_trajectory()
        self.assertFalse(load_trajectory_state(target, filename))
        self.assertEqual(target, sample_trajectory())

    def test_unsupported_object(self):
        with self.assertRaises(TypeError):
            save_trajectory_state([1, 2, 3], self.path("list.bin"))


if __name__ == "__main__":
    unittest.main()
