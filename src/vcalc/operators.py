"""Pure operator library over :class:`~vcalc.values.Value`.

Every operator returns :data:`~vcalc.values.INVALID` when its operands violate
its shape contract; none of them raise for malformed input.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Callable, Final

import jax
import jax.numpy as jnp

from .config import USE_JITTED_KERNELS
from .values import INVALID, Value, is_hex_eligible

BinaryFn = Callable[[jnp.ndarray, jnp.ndarray], jnp.ndarray]
UnaryFn = Callable[[jnp.ndarray], jnp.ndarray]

ANGLE_BRANCH_THRESHOLD: Final[float] = math.sqrt(2.0) / 2.0


_BASE_UNARY_OPS: Final[dict[str, UnaryFn]] = {
    "square": lambda x: x * x,
    "sqrt": jnp.sqrt,
    "reciprocal": lambda x: 1.0 / x,
    "negate": lambda x: -x,
    "abs": jnp.abs,
    "sin": jnp.sin,
    "cos": jnp.cos,
    "tan": jnp.tan,
    "asin": jnp.arcsin,
    "acos": jnp.arccos,
    "atan": jnp.arctan,
    "ln": jnp.log,
    "exp2": jnp.exp2,
    "exp": jnp.exp,
    "rad2deg": lambda x: x * 180.0 / math.pi,
    "deg2rad": lambda x: x * math.pi / 180.0,
}


@lru_cache(maxsize=None)
def _jitted_unary_kernel(op: str) -> UnaryFn:
    return jax.jit(_BASE_UNARY_OPS[op])


def _unary_kernel(op: str) -> UnaryFn:
    if USE_JITTED_KERNELS:
        return _jitted_unary_kernel(op)
    return _BASE_UNARY_OPS[op]


def unary(x: Value, op: str) -> Value:
    """Apply a named shape-preserving elementwise operator."""
    if not x.valid:
        return INVALID
    return Value(_unary_kernel(op)(x.components), x.rows)


def square(x: Value) -> Value:
    return unary(x, "square")


def sqrt(x: Value) -> Value:
    return unary(x, "sqrt")


def reciprocal(x: Value) -> Value:
    return unary(x, "reciprocal")


def negate(x: Value) -> Value:
    return unary(x, "negate")


def absolute(x: Value) -> Value:
    return unary(x, "abs")


def sin(x: Value) -> Value:
    return unary(x, "sin")


def cos(x: Value) -> Value:
    return unary(x, "cos")


def tan(x: Value) -> Value:
    return unary(x, "tan")


def asin(x: Value) -> Value:
    return unary(x, "asin")


def acos(x: Value) -> Value:
    return unary(x, "acos")


def atan(x: Value) -> Value:
    return unary(x, "atan")


def ln(x: Value) -> Value:
    return unary(x, "ln")


def exp2(x: Value) -> Value:
    return unary(x, "exp2")


def exp(x: Value) -> Value:
    return unary(x, "exp")


def rad2deg(x: Value) -> Value:
    return unary(x, "rad2deg")


def deg2rad(x: Value) -> Value:
    return unary(x, "deg2rad")


# -- elementwise binary -------------------------------------------------------


def op_pairs(a: Value, b: Value, fn: BinaryFn) -> Value:
    """Combine ``a`` and ``b`` elementwise, broadcasting a scalar operand."""
    if not (a.valid and b.valid):
        return INVALID
    if a.dimensions != 0 and b.dimensions != 0 and (a.length != b.length or a.rows != b.rows):
        return INVALID

    length = max(a.length, b.length)
    idx = jnp.arange(length)
    out = fn(a.components[idx % a.length], b.components[idx % b.length])
    return Value(out, max(a.rows, b.rows))


def add(a: Value, b: Value) -> Value:
    return op_pairs(a, b, jnp.add)


def subtract(a: Value, b: Value) -> Value:
    return op_pairs(a, b, jnp.subtract)


def divide(a: Value, b: Value) -> Value:
    return op_pairs(a, b, jnp.divide)


def power(a: Value, b: Value) -> Value:
    return op_pairs(a, b, jnp.power)


def multiply(a: Value, b: Value) -> Value:
    """Matrix product when a matrix meets a non-scalar, elementwise otherwise."""
    if a.dimensions == 2 and b.dimensions > 0:
        return matrix_multiply(a, b)
    if b.dimensions == 2 and a.dimensions > 0:
        # vector times matrix: put the matrix first so it just works
        return matrix_multiply(b, a)
    return op_pairs(a, b, jnp.multiply)


# -- linear algebra -------------------------------------------------------------


def matrix_multiply(left: Value, right: Value) -> Value:
    if not (left.valid and right.valid) or left.cols != right.rows:
        return INVALID
    return Value.from_matrix(jnp.matmul(left.as_matrix(), right.as_matrix()))


def _is_vector(x: Value) -> bool:
    return x.valid and x.dimensions == 1


def dot(a: Value, b: Value) -> Value:
    if not (_is_vector(a) and _is_vector(b)) or a.length != b.length:
        return INVALID
    return Value.scalar(float(jnp.dot(a.components, b.components)))


def cross(a: Value, b: Value) -> Value:
    # Longer vectors use their first three components.
    if not (_is_vector(a) and _is_vector(b)) or a.length < 3 or b.length < 3:
        return INVALID
    return Value.of(jnp.cross(a.components[:3], b.components[:3]))


def magnitude(x: Value) -> Value:
    if not _is_vector(x):
        return INVALID
    return Value.scalar(float(jnp.linalg.norm(x.components)))


def normalize(x: Value) -> Value:
    if not _is_vector(x):
        return INVALID
    # A zero vector yields non-finite components.
    return Value(x.components / jnp.linalg.norm(x.components), x.rows)


def transpose(x: Value) -> Value:
    if not x.valid:
        return INVALID
    if x.dimensions == 0:
        return x
    return Value.from_matrix(x.as_matrix().T)


def column(x: Value, i: int) -> Value:
    if not x.valid or x.dimensions != 2 or i < 0 or i >= x.cols:
        return INVALID
    return x.col(i)


def component(x: Value, i: int) -> Value:
    if not _is_vector(x) or i < 0 or i >= x.length:
        return INVALID
    return Value.scalar(float(x.components[i]))


def xyz(x: Value) -> Value:
    if not _is_vector(x) or x.length < 3:
        return INVALID
    return Value.of(x.components[:3])


def project(a: Value, b: Value) -> Value:
    """Projection of ``a`` onto ``b``."""
    ab = dot(a, b)
    if not ab.valid:
        return INVALID
    ab_value = float(ab.components[0])
    if ab_value == 0.0:
        return Value(jnp.zeros_like(a.components), a.rows)
    bb_value = float(jnp.dot(b.components, b.components))
    return Value(b.components * (ab_value / bb_value), b.rows)


def reject(a: Value, b: Value) -> Value:
    """Component of ``a`` orthogonal to ``b``."""
    return subtract(a, project(a, b))


def angle(a: Value, b: Value) -> Value:
    """Unsigned angle in radians between two nonzero 2- or 3-vectors."""
    if not (_is_vector(a) and _is_vector(b)) or a.length != b.length or a.length not in (2, 3):
        return INVALID
    if not (bool(jnp.any(a.components != 0)) and bool(jnp.any(b.components != 0))):
        return INVALID

    na = normalize(a).components
    nb = normalize(b).components
    cos_angle = float(jnp.dot(na, nb))
    if abs(cos_angle) > ANGLE_BRANCH_THRESHOLD:
        # arccos is poorly conditioned near 0 and pi
        if a.length == 2:
            sin_angle = abs(float(na[0] * nb[1] - na[1] * nb[0]))
        else:
            sin_angle = float(jnp.linalg.norm(jnp.cross(na, nb)))
        result = math.asin(min(sin_angle, 1.0))
        if cos_angle < 0.0:
            result = math.pi - result
    else:
        result = math.acos(cos_angle)
    return Value.scalar(result)


def plane(direction: Value, position: Value) -> Value:
    """Plane ``(nx, ny, nz, d)`` through ``position`` with normal ``direction``."""
    if not (direction.valid and position.valid) or direction.length < 3 or position.length < 3:
        return INVALID
    d = direction.components[:3]
    norm = float(jnp.linalg.norm(d))
    if norm == 0.0:
        return INVALID
    n = d / norm
    offset = -jnp.dot(n, position.components[:3])
    return Value.of(jnp.concatenate((n, jnp.reshape(offset, (1,)))))


def point_plane_distance(point: Value, plane_value: Value) -> Value:
    """Signed distance from ``point`` to a plane ``(nx, ny, nz, d)``."""
    if not (point.valid and plane_value.valid) or point.length < 3 or plane_value.length < 4:
        return INVALID
    homogeneous = jnp.concatenate((point.components[:3], jnp.ones((1,), dtype=point.components.dtype)))
    return Value.scalar(float(jnp.dot(homogeneous, plane_value.components[:4])))


__all__ = [
    "INVALID",
    "ANGLE_BRANCH_THRESHOLD",
    "unary",
    "square",
    "sqrt",
    "reciprocal",
    "negate",
    "absolute",
    "sin",
    "cos",
    "tan",
    "asin",
    "acos",
    "atan",
    "ln",
    "exp2",
    "exp",
    "rad2deg",
    "deg2rad",
    "op_pairs",
    "add",
    "subtract",
    "divide",
    "power",
    "multiply",
    "matrix_multiply",
    "dot",
    "cross",
    "magnitude",
    "normalize",
    "transpose",
    "column",
    "component",
    "xyz",
    "project",
    "reject",
    "angle",
    "plane",
    "point_plane_distance",
    "is_hex_eligible",
]
