"""
GP Context Module

This module implements the state shared by every GP tree of a run: the pool
of random constants that trees may reference, the dimensionality of the
inputs they read, and the limits used when growing new trees.

The constant pool is created once, read concurrently by any number of trees,
and never modified afterwards.

Classes:
    GPContext: Owner of the shared constant pool and tree-growth limits
"""

import logging
import numpy as np
from typing import Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from evorep.run.config import Config

logger = logging.getLogger(__name__)

NUM_FUNC = 4      # number of binary operators: ADD, SUB, MUL, DIV
MAX_LEN  = 10000  # default upper bound on the length of a grown tree

class GPContext:
    """
    Shared, read-only state for a population of GP trees.

    Node codes are laid out as follows:
        0 .. NUM_FUNC-1                               operators
        NUM_FUNC .. NUM_FUNC+n_constants-1            constants (index into the pool)
        NUM_FUNC+n_constants .. terminal_max-1        inputs    (index into x)

    Public Attributes:
        n_constants: Size of the constant pool
        x_dim:       Number of inputs a tree may read
        init_depth:  Maximum depth of newly grown trees
        max_len:     Maximum length of newly grown trees

    Public Properties:
        constants:    The (read-only) constant pool
        terminal_min: First terminal code
        terminal_max: One past the last terminal code
        closed:       Whether the context has been closed

    Public Methods:
        close(): Release the constant pool; the context cannot be used afterwards
    """

    def __init__(self,
                 n_constants: int,
                 x_dim      : int,
                 cons_min   : float                   = -1.0,
                 cons_max   : float                   = 1.0,
                 init_depth : int                     = 5,
                 max_len    : int                     = MAX_LEN,
                 constants  : Sequence[float] | None = None):
        """
        Initialize the context, drawing the constant pool uniformly from
        [cons_min, cons_max) unless explicit 'constants' are given.

        Parameters:
            n_constants: Size of the constant pool
            x_dim:       Number of inputs
            cons_min:    Lower bound for random constants
            cons_max:    Upper bound for random constants
            init_depth:  Maximum depth of newly grown trees
            max_len:     Maximum length of newly grown trees
            constants:   Explicit constant values (length 'n_constants')
        """
        if n_constants < 0:
            raise ValueError(f"Number of constants must be non-negative, got {n_constants}")
        if x_dim < 1:
            raise ValueError(f"Input dimension must be positive, got {x_dim}")
        if init_depth < 0:
            raise ValueError(f"Initial depth must be non-negative, got {init_depth}")
        if max_len < 1:
            raise ValueError(f"Maximum tree length must be positive, got {max_len}")
        if init_depth > 0 and max_len < 3:
            # grown trees have an operator at the root, hence at least 3 nodes
            raise ValueError(f"Maximum tree length must be at least 3 when growing to depth "
                             f"{init_depth}, got {max_len}")

        if constants is None:
            pool = np.random.uniform(cons_min, cons_max, n_constants)
        else:
            pool = np.array(constants, dtype=float)
            if pool.shape != (n_constants,):
                raise ValueError(f"Expected {n_constants} constants, got {pool.size}")
        pool.flags.writeable = False

        self.n_constants: int  = n_constants
        self.x_dim      : int  = x_dim
        self.init_depth : int  = init_depth
        self.max_len    : int  = max_len
        self._constants : np.ndarray | None = pool
        logger.debug(f"GP context: {n_constants} constants, {x_dim} inputs")

    @classmethod
    def from_config(cls, config: 'Config') -> 'GPContext':
        return cls(config.gp_num_constants,
                   config.x_dim,
                   cons_min   = config.gp_cons_min,
                   cons_max   = config.gp_cons_max,
                   init_depth = config.gp_init_depth,
                   max_len    = config.gp_max_len)

    @property
    def constants(self) -> np.ndarray:
        if self._constants is None:
            raise ValueError("GP context has been closed")
        return self._constants

    @property
    def terminal_min(self) -> int:
        return NUM_FUNC

    @property
    def terminal_max(self) -> int:
        return NUM_FUNC + self.n_constants + self.x_dim

    @property
    def closed(self) -> bool:
        return self._constants is None

    def close(self) -> None:
        self._constants = None

    def __enter__(self) -> 'GPContext':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
