"""
pySpline piecewise polynomial trajectories

This subpackage provides the scalar PiecewisePolynomial, its vector valued
PiecewisePolynomialND counterpart and builders for common shapes.
"""

from pySpline.spline.polynomial import as_polynomial, compose_shift
from pySpline.spline.piecewise_polynomial import PiecewisePolynomial, InvalidStateError
from pySpline.spline.piecewise_polynomial_nd import PiecewisePolynomialND
from pySpline.spline.constructors import (constant, linear, piecewise_linear,
                                          constant_nd, linear_nd, piecewise_linear_nd, subspace)

__all__ = [
	'PiecewisePolynomial',
	'PiecewisePolynomialND',
	'InvalidStateError',
	'as_polynomial',
	'compose_shift',
	'constant',
	'linear',
	'piecewise_linear',
	'constant_nd',
	'linear_nd',
	'piecewise_linear_nd',
	'subspace',
]
