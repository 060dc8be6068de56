"""
Segment polynomials.

Segments are ``numpy.polynomial.Polynomial`` instances with coefficients in
ascending order, C0 + C1x + C2x^2 + ... + Cnx^n = [C0,C1,C2,...,Cn].
The piecewise classes only rely on calling, ``deriv`` and ``+ - *``.
"""
import numbers

import numpy as np
from numpy.polynomial import Polynomial


def as_polynomial(p):
    """
    Coerce a number, a coefficient sequence or a Polynomial into a Polynomial.

    Polynomials are copied so that callers never share a segment object, and
    re-expressed on the default domain and window so that ``coef`` holds the
    plain power-series coefficients (``Polynomial.fit`` results included).
    """
    if isinstance(p, Polynomial):
        off, scl = p.mapparms()
        if off != 0 or scl != 1:
            p = p.convert()
        return Polynomial(p.coef)
    if isinstance(p, numbers.Real):
        return Polynomial([float(p)])
    coef = np.asarray(p, dtype=float)
    if coef.ndim != 1 or coef.size == 0:
        raise ValueError(f"Cannot build a polynomial from {p!r}")
    return Polynomial(coef)


def is_polynomial(p):
    return isinstance(p, Polynomial)


def compose_shift(p, shift):
    """Return q such that q(x) == p(x - shift)"""
    p = as_polynomial(p)
    if shift == 0:
        return p
    # domain [shift, shift + 1] onto window [0, 1] maps x to x - shift
    return Polynomial(p.coef, domain=[shift, shift + 1.0], window=[0.0, 1.0]).convert()


def polynomial_derivative(p, n=1):
    """n-th derivative; n == 0 returns a copy"""
    if n < 0:
        raise ValueError("Derivative order must be non-negative")
    if n == 0:
        return p.copy()
    return p.deriv(n)


def polynomial_to_string(p):
    """Readable form of a segment, skipping zero terms"""
    terms = []
    for i, coef in enumerate(p.coef):
        if coef == 0:
            continue
        if i == 0:
            terms.append(f"{coef:+.4g}")
        elif i == 1:
            terms.append(f"{coef:+.4g}u")
        else:
            terms.append(f"{coef:+.4g}u^{i}")
    return " ".join(terms) if terms else "0"
