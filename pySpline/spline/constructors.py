"""
Builders for common trajectory shapes.

Scalar builders return a PiecewisePolynomial, the ``_nd`` variants apply the
scalar builder per dimension and return a PiecewisePolynomialND.
"""
from numpy.polynomial import Polynomial

from pySpline.pyspline_units import to_internal_time
from pySpline.spline.piecewise_polynomial import PiecewisePolynomial
from pySpline.spline.piecewise_polynomial_nd import PiecewisePolynomialND


def constant(x, ta, tb):
	"""Constant value x over [ta, tb)"""
	return PiecewisePolynomial.from_segment(Polynomial([float(x)]), ta, tb)


def linear(a, b, ta, tb):
	"""
	Straight line going from a at ta to b at tb.

	The segment is stored in local time u = t - ta, so its polynomial is
	a + (b - a) / (tb - ta) * u.
	"""
	ta = float(to_internal_time(ta))
	tb = float(to_internal_time(tb))
	if not tb > ta:
		raise ValueError(f"Linear segment needs tb > ta, got [{ta}, {tb}]")
	p = Polynomial([float(a), (float(b) - float(a)) / (tb - ta)])
	return PiecewisePolynomial([p], [ta, tb], [ta])


def piecewise_linear(milestones, times):
	"""Linear interpolation through milestones[i] at times[i]"""
	if len(milestones) != len(times):
		raise ValueError(f"Got {len(milestones)} milestones for {len(times)} times")
	if len(milestones) < 2:
		raise ValueError("At least two milestones are required")

	times = [float(to_internal_time(t)) for t in times]
	res = linear(milestones[0], milestones[1], times[0], times[1])
	for i in range(1, len(milestones) - 1):
		dt = times[i + 1] - times[i]
		if not dt > 0:
			raise ValueError(f"Times must be strictly increasing, got {times[i]} followed by {times[i + 1]}")
		slope = (float(milestones[i + 1]) - float(milestones[i])) / dt
		res.append(Polynomial([float(milestones[i]), slope]), dt, relative=True)
	return res


def constant_nd(q, ta, tb):
	return PiecewisePolynomialND._wrap([constant(x, ta, tb) for x in q])


def linear_nd(a, b, ta, tb):
	if len(a) != len(b):
		raise ValueError(f"Start and end vectors differ in size: {len(a)} vs {len(b)}")
	return PiecewisePolynomialND._wrap([linear(x, y, ta, tb) for x, y in zip(a, b)])


def piecewise_linear_nd(milestones, times):
	"""
	Parameters
	----------
	milestones : sequence of vectors
		One vector per time, all of the same size
	times : sequence of float
	"""
	if not milestones:
		raise ValueError("At least two milestones are required")
	n = len(milestones[0])
	if any(len(m) != n for m in milestones):
		raise ValueError("All milestones must have the same dimension")
	return PiecewisePolynomialND._wrap(
		[piecewise_linear([m[d] for m in milestones], times) for d in range(n)])


def subspace(x0, dx, poly):
	"""
	Trajectory along the line x0 + s * dx where s follows the scalar poly.
	"""
	if len(x0) != len(dx):
		raise ValueError(f"Origin and direction differ in size: {len(x0)} vs {len(dx)}")
	return PiecewisePolynomialND._wrap(
		[poly * float(d) + float(x) for x, d in zip(x0, dx)])
