"""2-D gradient (Perlin) noise on numpy arrays.

Deterministic: the permutation table is fixed, so the same coordinates
always give the same value. Output is in [0, 1] and centred on 0.5.
"""
import numpy as np

_PERM = np.random.default_rng(1234).permutation(256)
_PERM = np.concatenate([_PERM, _PERM]).astype(np.int64)

# Eight unit-ish gradient directions
_GRADIENTS = np.array([
    [1.0, 1.0], [-1.0, 1.0], [1.0, -1.0], [-1.0, -1.0],
    [1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0],
])


def _fade(t):
    return t * t * t * (t * (t * 6.0 - 15.0) + 10.0)


def _corner(ix, iy, dx, dy):
    g = _GRADIENTS[_PERM[_PERM[ix] + iy] % 8]
    return g[..., 0] * dx + g[..., 1] * dy


def perlin2d(x, y):
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    x, y = np.broadcast_arrays(x, y)

    x0 = np.floor(x)
    y0 = np.floor(y)
    fx = x - x0
    fy = y - y0
    ix = x0.astype(np.int64) & 255
    iy = y0.astype(np.int64) & 255
    ix1 = (ix + 1) & 255
    iy1 = (iy + 1) & 255

    n00 = _corner(ix, iy, fx, fy)
    n10 = _corner(ix1, iy, fx - 1.0, fy)
    n01 = _corner(ix, iy1, fx, fy - 1.0)
    n11 = _corner(ix1, iy1, fx - 1.0, fy - 1.0)

    u = _fade(fx)
    v = _fade(fy)
    nx0 = n00 + u * (n10 - n00)
    nx1 = n01 + u * (n11 - n01)
    value = nx0 + v * (nx1 - nx0)

    # Raw range is about [-1, 1]
    return np.clip(0.5 + 0.5 * value, 0.0, 1.0)
