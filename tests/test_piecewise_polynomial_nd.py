import io
import unittest

import numpy as np
from numpy.polynomial import Polynomial

from pySpline import (PiecewisePolynomial, PiecewisePolynomialND, InvalidStateError,
                      BinaryStream, piecewise_linear_nd)


class TestPiecewisePolynomialND(unittest.TestCase):
    def setUp(self):
        self.traj = piecewise_linear_nd([[0.0, 0.0], [1.0, 2.0], [0.0, 4.0]], [0.0, 1.0, 2.0])

    def test_construction(self):
        self.assertEqual(self.traj.dimension, 2)
        nd = PiecewisePolynomialND.from_segments([Polynomial([1.0]), Polynomial([0.0, 1.0])], 0.0, 2.0)
        np.testing.assert_allclose(nd.evaluate(1.5), [1.0, 1.5])
        with self.assertRaises(TypeError):
            PiecewisePolynomialND([1.0, 2.0])

    def test_elements_are_copied(self):
        element = PiecewisePolynomial([[1.0]], [0.0, 1.0])
        nd = PiecewisePolynomialND([element])
        element.time_shift(5.0)
        self.assertEqual(nd.start_time(), 0.0)

    def test_evaluate_and_derivative(self):
        np.testing.assert_allclose(self.traj.evaluate(1.0), [1.0, 2.0])
        np.testing.assert_allclose(self.traj(0.5), [0.5, 1.0])
        np.testing.assert_allclose(self.traj.derivative(0.5), [1.0, 2.0])
        np.testing.assert_allclose(self.traj.derivative(1.5, 1), [-1.0, 2.0])
        np.testing.assert_allclose(self.traj.start(), [0.0, 0.0])
        np.testing.assert_allclose(self.traj.end(), [0.0, 4.0])
        self.assertEqual(self.traj.start_time(), 0.0)
        self.assertEqual(self.traj.end_time(), 2.0)

    def test_evaluate_vectorized(self):
        values = self.traj.evaluate_vectorized(np.array([0.0, 0.5, 2.0]))
        self.assertEqual(values.shape, (3, 2))
        np.testing.assert_allclose(values[1], [0.5, 1.0])

    def test_differentiate(self):
        velocity = self.traj.differentiate()
        np.testing.assert_allclose(velocity.evaluate(1.5), [-1.0, 2.0])

    def test_append(self):
        self.traj.append([Polynomial([0.0]), Polynomial([4.0])], 1.0, relative=True)
        self.assertEqual(self.traj.end_time(), 3.0)
        np.testing.assert_allclose(self.traj.evaluate(2.5), [0.0, 4.0])
        with self.assertRaises(ValueError):
            self.traj.append([Polynomial([0.0])], 1.0, relative=True)

    def test_concat(self):
        other = self.traj.copy()
        self.traj.concat(other, relative=True)
        self.assertEqual(self.traj.end_time(), 4.0)
        np.testing.assert_allclose(self.traj.evaluate(3.0), [1.0, 2.0])
        with self.assertRaises(ValueError):
            self.traj.concat(PiecewisePolynomialND([PiecewisePolynomial([[1.0]], [0.0, 1.0])]), relative=True)

    def test_concat_onto_empty(self):
        nd = PiecewisePolynomialND()
        nd.concat(self.traj)
        self.assertEqual(nd, self.traj)

    def test_time_shift(self):
        shifted = self.traj.copy()
        shifted.time_shift(1.0)
        np.testing.assert_allclose(shifted.evaluate(1.5), self.traj.evaluate(0.5))
        shifted.zero_time_shift()
        np.testing.assert_allclose(shifted.evaluate(2.5), self.traj.evaluate(1.5))

    def test_split_trim_select(self):
        front, back = self.traj.split(0.5)
        self.assertEqual(front.end_time(), 0.5)
        self.assertEqual(back.start_time(), 0.5)
        np.testing.assert_allclose(back.evaluate(1.5), self.traj.evaluate(1.5))

        sub = self.traj.select(0.25, 1.75)
        self.assertEqual(sub.start_time(), 0.25)
        self.assertEqual(sub.end_time(), 1.75)
        self.assertEqual(self.traj.end_time(), 2.0)

        self.traj.trim_front(0.5)
        self.traj.trim_back(1.5)
        for element in self.traj.elements:
            self.assertEqual(element.times, [0.5, 1.0, 1.5])

    def test_max_discontinuity(self):
        times, magnitudes = self.traj.max_discontinuity(1)
        np.testing.assert_allclose(times, [1.0, 0.0])
        np.testing.assert_allclose(magnitudes, [2.0, 0.0])
        times, magnitudes = self.traj.max_discontinuity(0)
        np.testing.assert_allclose(magnitudes, [0.0, 0.0], atol=1e-12)

    def test_read_write(self):
        stream = BinaryStream()
        self.assertTrue(self.traj.write(stream))
        stream.rewind()
        loaded = PiecewisePolynomialND()
        self.assertTrue(loaded.read(stream))
        self.assertEqual(loaded, self.traj)

    def test_read_truncated(self):
        stream = BinaryStream()
        self.traj.write(stream)
        data = stream.getvalue()
        loaded = PiecewisePolynomialND()
        self.assertFalse(loaded.read(BinaryStream(io.BytesIO(data[:-8]))))
        self.assertEqual(loaded.dimension, 0)

    def test_empty(self):
        with self.assertRaises(InvalidStateError):
            PiecewisePolynomialND().start_time()


if __name__ == "__main__":
    unittest.main()
