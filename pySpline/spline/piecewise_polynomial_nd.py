import logging

import numpy as np

from pySpline.stream import StreamError
from pySpline.spline.piecewise_polynomial import InvalidStateError, PiecewisePolynomial

logger = logging.getLogger(__name__)


class PiecewisePolynomialND:
	"""
	Vector valued trajectory made of one PiecewisePolynomial per dimension.

	All elements are expected to share the same breakpoints. This is the
	caller's responsibility and is not checked on every call; every operation
	is simply applied to each element with the same arguments.
	"""

	def __init__(self, elements=None):
		self.elements = []
		for e in elements or []:
			if not isinstance(e, PiecewisePolynomial):
				raise TypeError(f"Expected PiecewisePolynomial elements, got {type(e).__name__}")
			self.elements.append(e.copy())

	@classmethod
	def from_segments(cls, polys, a, b):
		"""One single-segment element per polynomial, all over [a, b)"""
		return cls._wrap([PiecewisePolynomial.from_segment(p, a, b) for p in polys])

	@classmethod
	def _wrap(cls, elements):
		res = cls()
		res.elements = elements
		return res

	def copy(self):
		return self._wrap([e.copy() for e in self.elements])

	__copy__ = copy

	def __deepcopy__(self, memo):
		return self.copy()

	def __eq__(self, other):
		if not isinstance(other, PiecewisePolynomialND):
			return NotImplemented
		return self.elements == other.elements

	def __len__(self):
		return len(self.elements)

	@property
	def dimension(self):
		return len(self.elements)

	def __repr__(self):
		return f"PiecewisePolynomialND(elements={self.elements!r})"

	def __str__(self):
		if not self.elements:
			return "No elements defined."
		return "\n".join(f"[{d}]\n{e}" for d, e in enumerate(self.elements))

	def _require_elements(self):
		if not self.elements:
			raise InvalidStateError("PiecewisePolynomialND has no elements")

	def _check_dimension(self, n, what):
		if n != len(self.elements):
			raise ValueError(f"Expected {len(self.elements)} {what}, got {n}")

	def evaluate(self, t):
		return np.array([e.evaluate(t) for e in self.elements])

	def __call__(self, t):
		return self.evaluate(t)

	def derivative(self, t, n=1):
		return np.array([e.derivative(t, n) for e in self.elements])

	def evaluate_vectorized(self, ts):
		"""Array of shape (len(ts), dimension)"""
		self._require_elements()
		return np.column_stack([e.evaluate_vectorized(ts) for e in self.elements])

	def differentiate(self, n=1):
		return self._wrap([e.differentiate(n) for e in self.elements])

	def start(self):
		return np.array([e.start() for e in self.elements])

	def end(self):
		return np.array([e.end() for e in self.elements])

	def start_time(self):
		self._require_elements()
		return self.elements[0].start_time()

	def end_time(self):
		self._require_elements()
		return self.elements[0].end_time()

	def concat(self, traj, relative=False):
		if not self.elements:
			self.elements = [e.copy() for e in traj.elements]
			return
		self._check_dimension(len(traj.elements), "elements to concatenate")
		for e, other in zip(self.elements, traj.elements):
			e.concat(other, relative)

	def append(self, polys, t, relative=False):
		"""Append one polynomial per dimension, see PiecewisePolynomial.append"""
		self._require_elements()
		polys = list(polys)
		self._check_dimension(len(polys), "polynomials")
		for e, p in zip(self.elements, polys):
			e.append(p, t, relative)

	def time_shift(self, dt):
		for e in self.elements:
			e.time_shift(dt)

	def zero_time_shift(self):
		for e in self.elements:
			e.zero_time_shift()

	def split(self, t):
		self._require_elements()
		halves = [e.split(t) for e in self.elements]
		front = self._wrap([f for f, _ in halves])
		back = self._wrap([b for _, b in halves])
		return front, back

	def trim_front(self, tstart):
		for e in self.elements:
			e.trim_front(tstart)

	def trim_back(self, tend):
		for e in self.elements:
			e.trim_back(tend)

	def select(self, a, b):
		return self._wrap([e.select(a, b) for e in self.elements])

	def max_discontinuity(self, derivative=0):
		"""
		Per-dimension discontinuity analysis.

		Returns
		-------
		tuple
			(times, magnitudes), one entry per dimension
		"""
		results = [e.max_discontinuity(derivative) for e in self.elements]
		times = np.array([t for t, _ in results])
		magnitudes = np.array([m for _, m in results])
		return times, magnitudes

	def read(self, stream):
		"""Element count followed by one record per element; False on bad data"""
		try:
			m = stream.read_count()
		except StreamError as e:
			logger.warning(f"Failed to read PiecewisePolynomialND: {e}")
			return False

		elements = []
		for d in range(m):
			e = PiecewisePolynomial()
			if not e.read(stream):
				logger.warning(f"Failed to read element {d} of {m}")
				return False
			elements.append(e)
		self.elements = elements
		return True

	def write(self, stream):
		try:
			stream.write_int(len(self.elements))
		except OSError as e:
			logger.warning(f"Failed to write PiecewisePolynomialND: {e}")
			return False
		return all(e.write(stream) for e in self.elements)

	def plot(self, ax=None, num_points=200, title=None, show=True):
		"""Plot every dimension on the same axes"""
		import matplotlib.pyplot as plt

		if ax is None:
			fig, ax = plt.subplots(figsize=(10, 6))

		colors = plt.rcParams['axes.prop_cycle'].by_key().get('color', ['blue'])
		for d, e in enumerate(self.elements):
			e.plot(ax=ax, num_points=num_points, color=colors[d % len(colors)],
			       label=f"dim {d}", show=False)
		if title:
			ax.set_title(title)
		if self.elements:
			ax.legend()

		if show:
			plt.tight_layout()
			plt.show()

		return ax
