import bisect
import logging
import numbers

import numpy as np

from pySpline.pyspline_units import unit_manager, to_internal_time
from pySpline.stream import StreamError
from pySpline.spline.polynomial import (as_polynomial, compose_shift, is_polynomial,
                                        polynomial_derivative, polynomial_to_string)

logger = logging.getLogger(__name__)


class InvalidStateError(RuntimeError):
	"""Raised when an operation needs a trajectory with at least one segment"""
	pass


def _validate_times(times):
	for a, b in zip(times, times[1:]):
		if not b > a:
			raise ValueError(f"Breakpoints must be strictly increasing, got {a} followed by {b}")


class PiecewisePolynomial:
	"""
	A trajectory y(t) made of polynomial segments split among breakpoints.

	``segments[i]`` is active over the interval ``[times[i], times[i+1])``
	(the last interval also includes its right end). Each segment has its own
	local time, related to the global time by ``time_shifts``::

		y(t) = segments[i](t - time_shifts[i])

	so the local domain of segment i is
	``[times[i] - time_shifts[i], times[i+1] - time_shifts[i])``.

	Parameters
	----------
	segments : list, optional
		Segment polynomials (``numpy.polynomial.Polynomial``, coefficient
		sequences or constants). Omit for an empty trajectory.
	times : list, optional
		``len(segments) + 1`` strictly increasing breakpoints.
	time_shifts : list, optional
		Per-segment shifts. Defaults to zeros, or to ``times[:-1]`` when
		``relative`` is True (every segment defined on ``[0, duration)``).
	relative : bool, optional
		See ``time_shifts``.
	"""

	# numpy scalars and Polynomial defer to our reflected operators
	__array_ufunc__ = None

	def __array__(self, dtype=None, copy=None):
		raise TypeError("PiecewisePolynomial cannot be converted to an array")

	def __init__(self, segments=None, times=None, time_shifts=None, relative=False):
		self.segments = []
		self.times = []
		self.time_shifts = []

		if segments is None:
			if times is not None or time_shifts is not None:
				raise ValueError("Breakpoints given without segments")
			return

		segments = [as_polynomial(p) for p in segments]
		if not segments:
			raise ValueError("At least one segment is required")
		if times is None or len(times) != len(segments) + 1:
			raise ValueError(f"Expected {len(segments) + 1} breakpoints for {len(segments)} segments")
		times = [float(to_internal_time(t)) for t in times]
		_validate_times(times)

		if time_shifts is None:
			time_shifts = times[:-1] if relative else [0.0] * len(segments)
		else:
			if relative:
				raise ValueError("relative=True cannot be combined with explicit time_shifts")
			if len(time_shifts) != len(segments):
				raise ValueError(f"Expected {len(segments)} time shifts, got {len(time_shifts)}")
			time_shifts = [float(to_internal_time(s)) for s in time_shifts]

		self.segments = segments
		self.times = times
		self.time_shifts = list(time_shifts)

	@classmethod
	def from_segment(cls, p, a, b):
		"""Single segment over [a, b), defined in global time"""
		return cls([p], [a, b])

	def copy(self):
		res = type(self)()
		res.segments = [p.copy() for p in self.segments]
		res.times = list(self.times)
		res.time_shifts = list(self.time_shifts)
		return res

	__copy__ = copy

	def __deepcopy__(self, memo):
		return self.copy()

	def __eq__(self, other):
		if not isinstance(other, PiecewisePolynomial):
			return NotImplemented
		return (self.times == other.times
		        and self.time_shifts == other.time_shifts
		        and len(self.segments) == len(other.segments)
		        and all(np.array_equal(p.coef, q.coef) for p, q in zip(self.segments, other.segments)))

	def __len__(self):
		return len(self.segments)

	@property
	def num_segments(self):
		return len(self.segments)

	def is_empty(self):
		return not self.segments

	def _require_segments(self):
		if not self.segments:
			raise InvalidStateError("PiecewisePolynomial has no segments")

	def __repr__(self):
		return (f"PiecewisePolynomial(segments={[p.coef.tolist() for p in self.segments]}, "
		        f"times={self.times}, time_shifts={self.time_shifts})")

	def __str__(self):
		if not self.segments:
			return "No piecewise polynomial segments defined."
		out = []
		for i, p in enumerate(self.segments):
			close = "]" if i == len(self.segments) - 1 else ")"
			out.append(f"[{self.times[i]:.4g}, {self.times[i + 1]:.4g}{close}: "
			           f"{polynomial_to_string(p)}  (u = t - {self.time_shifts[i]:.4g})")
		return "\n".join(out)

	#%% Lookup and evaluation
	def _find(self, t):
		if t >= self.times[-1]:
			return len(self.segments) - 1
		return min(max(bisect.bisect_right(self.times, t) - 1, 0), len(self.segments) - 1)

	def find_segment(self, t):
		"""
		Index of the segment that is active at time t.

		Times before the start map to the first segment and times at or after
		the end map to the last one.
		"""
		self._require_segments()
		return self._find(to_internal_time(t))

	def evaluate(self, t):
		"""Value at t, extrapolating with the boundary segments outside the domain"""
		self._require_segments()
		t = to_internal_time(t)
		i = self._find(t)
		return float(self.segments[i](t - self.time_shifts[i]))

	def __call__(self, t):
		return self.evaluate(t)

	def derivative(self, t, n=1):
		"""n-th time derivative at t; n == 0 is the same as evaluate"""
		self._require_segments()
		t = to_internal_time(t)
		i = self._find(t)
		return float(polynomial_derivative(self.segments[i], n)(t - self.time_shifts[i]))

	def evaluate_vectorized(self, ts):
		"""
		Evaluate at many times at once.

		Parameters
		----------
		ts : array_like or Quantity array
			Query times

		Returns
		-------
		numpy.ndarray
			Values with the shape of ``ts``
		"""
		self._require_segments()
		ts = np.asarray(to_internal_time(ts), dtype=float)
		indices = np.searchsorted(self.times, ts, side='right') - 1
		indices = np.clip(indices, 0, len(self.segments) - 1)

		results = np.zeros_like(ts)
		for i, (p, shift) in enumerate(zip(self.segments, self.time_shifts)):
			mask = indices == i
			if np.any(mask):
				results[mask] = p(ts[mask] - shift)
		return results

	def differentiate(self, n=1):
		"""New trajectory whose segments are the n-th derivatives of these ones"""
		res = self.copy()
		res.segments = [polynomial_derivative(p, n) for p in self.segments]
		return res

	def start(self):
		self._require_segments()
		return float(self.segments[0](self.times[0] - self.time_shifts[0]))

	def end(self):
		self._require_segments()
		return float(self.segments[-1](self.times[-1] - self.time_shifts[-1]))

	def start_time(self):
		self._require_segments()
		return self.times[0]

	def end_time(self):
		self._require_segments()
		return self.times[-1]

	def duration(self):
		return self.end_time() - self.start_time()

	#%% Structural editing
	def append(self, p, t, relative=False):
		"""
		Append a segment after the final segment.

		If relative is True, t is the duration of the new segment and p is
		defined on [0, t]. Otherwise t is the new end time and p is defined
		in global time on [end_time(), t].
		"""
		self._require_segments()
		p = as_polynomial(p)
		t = float(to_internal_time(t))
		tend = self.times[-1]
		if relative:
			if not t > 0:
				raise ValueError(f"Segment duration must be positive, got {t}")
			self.time_shifts.append(tend)
			self.times.append(tend + t)
		else:
			if not t > tend:
				raise ValueError(f"New end time {t} does not extend the trajectory ending at {tend}")
			self.time_shifts.append(0.0)
			self.times.append(t)
		self.segments.append(p)

	def concat(self, traj, relative=False):
		"""
		Append every segment of traj after the final segment.

		If relative is True, traj is moved forward in time by end_time()
		before it is spliced in.
		"""
		if not traj.segments:
			logger.debug("Concatenating an empty trajectory - nothing to do")
			return
		if not self.segments:
			other = traj.copy()
			self.segments, self.times, self.time_shifts = other.segments, other.times, other.time_shifts
			return

		tend = self.times[-1]
		offset = tend if relative else 0.0
		join = traj.times[0] + offset
		if join < tend - unit_manager.tolerance:
			raise ValueError(f"Concatenated trajectory starts at {join}, before the end time {tend}")
		if join > tend + unit_manager.tolerance:
			logger.debug(f"Gap between {tend} and {join}: first concatenated segment is extended back")

		pieces = list(zip(traj.segments, traj.time_shifts, traj.times[1:]))
		for p, shift, tb in pieces:
			self.segments.append(p.copy())
			self.time_shifts.append(shift + offset)
			self.times.append(tb + offset)

	def time_shift(self, dt):
		"""Move the whole trajectory forward in time by dt"""
		dt = float(to_internal_time(dt))
		self.times = [t + dt for t in self.times]
		self.time_shifts = [s + dt for s in self.time_shifts]

	def zero_time_shift(self):
		"""Re-express every segment in global time so that all time shifts are 0"""
		self.segments = [compose_shift(p, s) for p, s in zip(self.segments, self.time_shifts)]
		self.time_shifts = [0.0] * len(self.segments)

	def _snap(self, t):
		"""t moved onto a breakpoint lying within unit_manager.tolerance of it"""
		i = bisect.bisect_left(self.times, t)
		for j in (i - 1, i):
			if 0 <= j < len(self.times) and abs(t - self.times[j]) <= unit_manager.tolerance:
				return self.times[j]
		return t

	def split(self, t):
		"""
		Split the trajectory at t.

		Returns
		-------
		tuple
			(front, back) covering [start_time(), t) and [t, end_time()].
			A segment straddling t is copied unchanged into both halves.
			front is empty when t == start_time(), back is empty when
			t == end_time(). end_time() and start_time() of an empty
			half raise InvalidStateError. t within unit_manager.tolerance of a
			breakpoint splits exactly on that breakpoint.
		"""
		self._require_segments()
		t = self._snap(float(to_internal_time(t)))
		if t < self.times[0] or t > self.times[-1]:
			raise ValueError(f"Split time {t} outside [{self.times[0]}, {self.times[-1]}]")

		front = type(self)()
		back = type(self)()
		if t == self.times[0]:
			return front, self.copy()
		if t == self.times[-1]:
			return self.copy(), back

		i = self._find(t)
		# t on a breakpoint leaves segment i entirely in the back half
		nfront = i if t == self.times[i] else i + 1
		front.segments = [p.copy() for p in self.segments[:nfront]]
		front.time_shifts = self.time_shifts[:nfront]
		front.times = self.times[:nfront] + [t]

		back.segments = [p.copy() for p in self.segments[i:]]
		back.time_shifts = self.time_shifts[i:]
		back.times = [t] + self.times[i + 1:]
		return front, back

	def trim_front(self, tstart):
		"""Drop everything before tstart, which becomes the new start time"""
		self._require_segments()
		tstart = self._snap(float(to_internal_time(tstart)))
		if tstart >= self.times[-1]:
			raise ValueError(f"Cannot trim front at {tstart}: trajectory ends at {self.times[-1]}")
		i = self._find(tstart)
		self.segments = self.segments[i:]
		self.time_shifts = self.time_shifts[i:]
		self.times = [tstart] + self.times[i + 1:]

	def trim_back(self, tend):
		"""Drop everything after tend, which becomes the new end time"""
		self._require_segments()
		tend = self._snap(float(to_internal_time(tend)))
		if tend <= self.times[0]:
			raise ValueError(f"Cannot trim back at {tend}: trajectory starts at {self.times[0]}")
		i = self._find(tend)
		n = i if tend == self.times[i] else i + 1
		self.segments = self.segments[:n]
		self.time_shifts = self.time_shifts[:n]
		self.times = self.times[:n] + [tend]

	def select(self, a, b):
		"""Copy of the sub-trajectory over [a, b]"""
		a = float(to_internal_time(a))
		b = float(to_internal_time(b))
		if not a < b:
			raise ValueError(f"Empty selection [{a}, {b}]")
		res = self.copy()
		res.trim_front(a)
		res.trim_back(b)
		return res

	#%% Analysis
	def max_discontinuity(self, derivative=0):
		"""
		Largest jump of the given derivative over the interior breakpoints.

		Returns
		-------
		tuple
			(time, magnitude). A single-segment trajectory returns
			(start_time(), 0.0).
		"""
		self._require_segments()
		tmax = self.times[0]
		dmax = 0.0
		for i in range(1, len(self.segments)):
			t = self.times[i]
			left = polynomial_derivative(self.segments[i - 1], derivative)(t - self.time_shifts[i - 1])
			right = polynomial_derivative(self.segments[i], derivative)(t - self.time_shifts[i])
			d = float(abs(right - left))
			if d > dmax:
				tmax, dmax = t, d
		return tmax, dmax

	def to_ppoly(self):
		"""
		Export as a scipy.interpolate.PPoly.

		PPoly expects coefficients in descending order, local to the left
		breakpoint of each interval, one column per segment.
		"""
		from scipy.interpolate import PPoly

		self._require_segments()
		local = [compose_shift(p, s - t0) for p, s, t0 in zip(self.segments, self.time_shifts, self.times)]
		max_degree = max(len(p.coef) for p in local)
		c = np.zeros((max_degree, len(local)))
		for i, p in enumerate(local):
			c[max_degree - len(p.coef):, i] = p.coef[::-1]
		return PPoly(c, np.asarray(self.times), extrapolate=True)

	#%% Persistence
	def read(self, stream):
		"""
		Load segments, time shifts and breakpoints from a BinaryStream.

		Returns False on truncated or malformed data, in which case this
		object is left unchanged.
		"""
		try:
			n = stream.read_count()
			segments = [stream.read_polynomial() for _ in range(n)]
			time_shifts = stream.read_floats()
			times = stream.read_floats()
		except StreamError as e:
			logger.warning(f"Failed to read PiecewisePolynomial: {e}")
			return False

		expected_times = n + 1 if n else 0
		if len(time_shifts) != n or len(times) != expected_times:
			logger.warning(f"Malformed PiecewisePolynomial record: {n} segments, "
			               f"{len(time_shifts)} time shifts, {len(times)} breakpoints")
			return False
		try:
			_validate_times(times)
		except ValueError as e:
			logger.warning(f"Malformed PiecewisePolynomial record: {e}")
			return False

		self.segments = segments
		self.time_shifts = time_shifts
		self.times = times
		return True

	def write(self, stream):
		try:
			stream.write_int(len(self.segments))
			for p in self.segments:
				stream.write_polynomial(p)
			stream.write_floats(self.time_shifts)
			stream.write_floats(self.times)
		except OSError as e:
			logger.warning(f"Failed to write PiecewisePolynomial: {e}")
			return False
		return True

	#%% Arithmetic
	# Polynomial operands act on each segment's local variable
	def _operand(self, other):
		if is_polynomial(other):
			return as_polynomial(other)
		if isinstance(other, numbers.Real):
			return other
		return None

	def __iadd__(self, other):
		other = self._operand(other)
		if other is not None:
			self.segments = [p + other for p in self.segments]
			return self
		return NotImplemented

	def __isub__(self, other):
		other = self._operand(other)
		if other is not None:
			self.segments = [p - other for p in self.segments]
			return self
		return NotImplemented

	def __imul__(self, other):
		other = self._operand(other)
		if other is not None:
			self.segments = [p * other for p in self.segments]
			return self
		return NotImplemented

	def __itruediv__(self, other):
		if is_polynomial(other):
			raise TypeError("Division of a PiecewisePolynomial by a polynomial is not supported")
		if isinstance(other, numbers.Real):
			self.segments = [p / other for p in self.segments]
			return self
		return NotImplemented

	def __add__(self, other):
		return self.copy().__iadd__(other)

	__radd__ = __add__

	def __sub__(self, other):
		return self.copy().__isub__(other)

	def __mul__(self, other):
		return self.copy().__imul__(other)

	__rmul__ = __mul__

	def __truediv__(self, other):
		return self.copy().__itruediv__(other)

	def __neg__(self):
		return self * -1.0

	#%% Plotting
	def plot(self, ax=None, num_points=200, color='blue', title=None, linewidth=2, label=None, show=True):
		"""
		Plot the trajectory with dotted markers at the breakpoints.

		Returns
		-------
		matplotlib.axes.Axes
			The axes containing the plot
		"""
		import matplotlib.pyplot as plt

		if ax is None:
			fig, ax = plt.subplots(figsize=(10, 6))

		if not self.segments:
			ax.text(0.5, 0.5, "No function defined", ha='center', va='center')
			return ax

		t_values = np.linspace(self.times[0], self.times[-1], num_points)
		ax.plot(t_values, self.evaluate_vectorized(t_values), color=color, linewidth=linewidth, label=label)

		for breakpoint in self.times:
			ax.axvline(x=breakpoint, color='gray', linestyle=':', alpha=0.7, linewidth=1)

		ax.set_xlabel(f"t [{unit_manager.INTERNAL_TIME_UNIT}]")
		ax.set_ylabel("y(t)")
		if title:
			ax.set_title(title)
		ax.grid(True, linestyle='--', alpha=0.7)

		if show:
			plt.tight_layout()
			plt.show()

		return ax
