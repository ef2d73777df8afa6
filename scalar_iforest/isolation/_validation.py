"""
Capability checks shared by the isolation tree and forest.
"""

from __future__ import annotations

from typing import Union

import numpy as np
import numpy.typing as npt

RandomState = Union[int, np.random.Generator, None]


def check_value_dtype(dtype: npt.DTypeLike) -> np.dtype:
    """
    Args:
        dtype: Requested value dtype.
    Returns:
        The dtype as a numpy dtype object.
    Raises:
        TypeError: If the dtype is not a floating point type.
    """
    resolved = np.dtype(dtype)
    if not np.issubdtype(resolved, np.floating):
        raise TypeError(f"value dtype must be a floating point type, got {resolved}")
    return resolved


def check_index_dtype(index_dtype: npt.DTypeLike) -> np.dtype:
    """
    Index types must be signed so that the "no child" sentinel (-1) is representable.
    """
    resolved = np.dtype(index_dtype)
    if not np.issubdtype(resolved, np.signedinteger):
        raise TypeError(f"index dtype must be a signed integer type, got {resolved}")
    return resolved


def as_generator(random_state: RandomState) -> np.random.Generator:
    """
    Turn a seed, a generator or None into a numpy Generator.
    A Generator instance is returned as is so that callers can share one stream.
    """
    if isinstance(random_state, np.random.Generator):
        return random_state
    if random_state is None or isinstance(random_state, (int, np.integer)):
        return np.random.default_rng(random_state)
    raise TypeError(
        f"random_state must be an int, a numpy Generator or None, got {type(random_state).__name__}"
    )
