import numpy as np

# Gauss-Legendre points and weights on [-1, 1]
_GAUSS_QUAD = {
    1: (np.array([0.0]), np.array([2.0])),
    2: (np.array([-1.0 / np.sqrt(3), 1.0 / np.sqrt(3)]), np.array([1.0, 1.0])),
    3: (np.array([-np.sqrt(3 / 5), 0.0, np.sqrt(3 / 5)]), np.array([5 / 9, 8 / 9, 5 / 9])),
    5: (
        np.array([
            -np.sqrt(5 + 2 * np.sqrt(10 / 7)) / 3,
            -np.sqrt(5 - 2 * np.sqrt(10 / 7)) / 3,
            0.0,
            np.sqrt(5 - 2 * np.sqrt(10 / 7)) / 3,
            np.sqrt(5 + 2 * np.sqrt(10 / 7)) / 3,
        ]),
        np.array([
            (322 - 13 * np.sqrt(70)) / 900,
            (322 + 13 * np.sqrt(70)) / 900,
            128 / 225,
            (322 + 13 * np.sqrt(70)) / 900,
            (322 - 13 * np.sqrt(70)) / 900,
        ]),
    ),
}

# Symmetric rules on the reference triangle (0,0)-(1,0)-(0,1), weights sum to 1/2
_A4, _W4A = 0.445948490915965, 0.223381589678011
_B4, _W4B = 0.091576213509771, 0.109951743655322

_TRIANGLE_QUAD = {
    1: (
        np.array([1 / 3]),
        np.array([1 / 3]),
        np.array([0.5]),
    ),
    2: (
        np.array([1 / 6, 2 / 3, 1 / 6]),
        np.array([1 / 6, 1 / 6, 2 / 3]),
        np.full(3, 1 / 6),
    ),
    4: (
        np.array([_A4, 1 - 2 * _A4, _A4, _B4, 1 - 2 * _B4, _B4]),
        np.array([_A4, _A4, 1 - 2 * _A4, _B4, _B4, 1 - 2 * _B4]),
        0.5 * np.array([_W4A, _W4A, _W4A, _W4B, _W4B, _W4B]),
    ),
}


def gauss_legendre(n_quad: int) -> tuple[np.ndarray, np.ndarray]:
    """Gauss-Legendre points and weights on [-1, 1]."""
    if n_quad not in _GAUSS_QUAD:
        raise ValueError(f"Unsupported n_quad={n_quad}. Use 1, 2, 3, or 5.")
    return _GAUSS_QUAD[n_quad]


def triangle_rule(degree: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Quadrature rule on the reference triangle exact up to ``degree``.

    Returns
    -------
    xi, eta, w : ndarray (n_quad,)
        Reference coordinates and weights.
    """
    for d in sorted(_TRIANGLE_QUAD):
        if d >= degree:
            return _TRIANGLE_QUAD[d]
    raise ValueError(f"Unsupported quadrature degree {degree}. Use at most {max(_TRIANGLE_QUAD)}.")
