"""
GP Tree Module

This module implements arithmetic expression trees for genetic programming,
in the style of TinyGP: a tree is a flat list of integer node codes in prefix
order. Operators (ADD, SUB, MUL, DIV) take exactly two sub-trees; terminals
are either a constant from the shared pool of a GPContext or one of the
inputs.

Trees are grown randomly, evaluated, recombined by sub-tree crossover and
mutated by point mutation. Structure is only changed by crossover.

See: Poli, Langdon, and McPhee (2008) "A Field Guide to Genetic Programming"

Classes:
    GPTree: A prefix-encoded arithmetic expression tree

Functions:
    traverse: Index just past the sub-tree rooted at a given position
    grow:     Randomly grow a prefix-encoded tree into a buffer
"""

import logging
import random
import numpy as np
from pathlib import Path
from typing  import BinaryIO, Sequence

from evorep.adaptation import SamType, sam_adapt, sam_init
from evorep.errors     import CorruptDataError
from evorep.gp.context import GPContext, NUM_FUNC
from evorep.utils      import binio

logger = logging.getLogger(__name__)

ADD = 0
SUB = 1
MUL = 2
DIV = 3

OPERATOR_SYMBOLS = {ADD: '+', SUB: '-', MUL: '*', DIV: '/'}

MU_TYPE = (SamType.RATE_SELECT,)  # a single point-mutation rate

def traverse(tree: Sequence[int], p: int) -> int:
    """
    Get the position just past the sub-tree rooted at 'p'.

    Parameters:
        tree: Prefix-encoded node codes
        p:    Root of the sub-tree

    Returns:
        The position after the sub-tree

    Raises:
        CorruptDataError on a negative node code or if the sub-tree runs past the end
    """
    pending = 1  # sub-trees still to be consumed
    while pending > 0:
        if p >= len(tree):
            raise CorruptDataError(f"Tree traversal ran past the end (position {p}, length {len(tree)})")
        node = tree[p]
        if node >= NUM_FUNC:
            pending -= 1
        elif node in OPERATOR_SYMBOLS:
            pending += 1
        else:
            raise CorruptDataError(f"Invalid GP function: {node}")
        p += 1
    return p

def grow(ctx: GPContext, buffer: list[int], p: int, max_len: int, depth: int) -> int:
    """
    Recursively grow a random tree into 'buffer' starting at position 'p'.
    The root (p == 0) is an operator unless 'depth' is 0.

    Parameters:
        ctx:     Shared GP context (terminal ranges)
        buffer:  Destination, at least 'max_len' long
        p:       Current position
        max_len: Maximum tree length
        depth:   Remaining depth

    Returns:
        The position after the grown sub-tree, or -1 if 'max_len' was exceeded
    """
    if p >= max_len:
        return -1
    prim = 1 if p == 0 else random.randint(0, 1)
    if prim == 0 or depth == 0:
        buffer[p] = random.randrange(ctx.terminal_min, ctx.terminal_max)
        return p + 1
    buffer[p] = random.randrange(0, NUM_FUNC)
    one_child = grow(ctx, buffer, p + 1, max_len, depth - 1)
    if one_child < 0:
        return -1
    return grow(ctx, buffer, one_child, max_len, depth - 1)

class GPTree:
    """
    A prefix-encoded arithmetic expression tree.

    Evaluation works on a local operand stack, so the same tree
    may be evaluated from several call sites. The 'p' attribute exists only
    because it is part of the binary file format.

    Public Attributes:
        tree: Node codes in prefix order
        mu:   Self-adaptive mutation rates (mu[0] is the per-node mutation probability)
        p:    Stored cursor (always 0 outside of loading/saving)

    Public Properties:
        len: Number of nodes

    Public Methods:
        random(ctx):      (classmethod) Grow a random tree
        evaluate(x):      Evaluate the tree on an input vector
        render(p):        Infix string of the sub-tree at 'p' and the position after it
        copy():           Deep copy
        crossover(other): Sub-tree crossover with another tree (both are modified)
        mutate():         Point mutation
        save(fp), load(fp, ctx): Binary persistence
    """

    def __init__(self,
                 ctx : GPContext,
                 tree: Sequence[int],
                 mu  : Sequence[float] | None = None,
                 p   : int                    = 0):
        """
        Initialize a tree from explicit node codes.

        Parameters:
            ctx:  Shared GP context
            tree: Node codes in prefix order; must form exactly one complete tree
            mu:   Mutation rates (freshly initialized if None)
            p:    Stored cursor

        Raises:
            CorruptDataError if the codes do not form exactly one complete tree
                             or reference a terminal outside the context
        """
        self._ctx: GPContext  = ctx
        self.tree: list[int]  = [int(code) for code in tree]
        self.mu  : np.ndarray = sam_init(MU_TYPE) if mu is None else np.array(mu, dtype=float)
        self.p   : int        = p
        self._validate()

    def _validate(self) -> None:
        if len(self.tree) < 1:
            raise CorruptDataError("Empty GP tree")
        end = traverse(self.tree, 0)
        if end != len(self.tree):
            raise CorruptDataError(f"GP tree ends at {end} but has {len(self.tree)} nodes")
        for code in self.tree:
            if code >= self._ctx.terminal_max:
                raise CorruptDataError(f"Invalid GP terminal: {code}")
        if len(self.mu) != len(MU_TYPE):
            raise CorruptDataError(f"Expected {len(MU_TYPE)} mutation rates, got {len(self.mu)}")

    @classmethod
    def random(cls, ctx: GPContext) -> 'GPTree':
        """
        Grow a random tree, retrying until one fits within 'ctx.max_len'.
        """
        buffer = [0] * ctx.max_len
        length = -1
        while length < 0:
            length = grow(ctx, buffer, 0, ctx.max_len, ctx.init_depth)
        return cls(ctx, buffer[:length])

    @property
    def len(self) -> int:
        return len(self.tree)

    def __len__(self):
        return len(self.tree)

    def evaluate(self, x: Sequence[float]) -> float:
        """
        Evaluate the tree. Division by zero returns the numerator unchanged.

        Parameters:
            x: Input vector (at least 'ctx.x_dim' long)

        Returns:
            The value of the expression
        """
        constants = self._ctx.constants
        offset    = NUM_FUNC + self._ctx.n_constants

        # Scanning the prefix codes backwards leaves both operands of an
        # operator on the stack, the left one on top.
        stack: list[float] = []
        for node in reversed(self.tree):
            if node >= offset:
                stack.append(float(x[node - offset]))
            elif node >= NUM_FUNC:
                stack.append(float(constants[node - NUM_FUNC]))
            else:
                a = stack.pop()
                b = stack.pop()
                if node == ADD:
                    stack.append(a + b)
                elif node == SUB:
                    stack.append(a - b)
                elif node == MUL:
                    stack.append(a * b)
                elif node == DIV:
                    stack.append(a if b == 0 else a / b)
                else:
                    raise CorruptDataError(f"Invalid GP function: {node}")
        return stack[0]

    def render(self, p: int = 0) -> tuple[str, int]:
        """
        Render the sub-tree rooted at 'p' as a parenthesized infix expression.

        Returns:
            The expression and the position after the sub-tree
        """
        end    = traverse(self.tree, p)
        offset = NUM_FUNC + self._ctx.n_constants
        stack: list[str] = []
        for node in reversed(self.tree[p:end]):
            if node >= offset:
                stack.append(f"IN:{node - offset} ")
            elif node >= NUM_FUNC:
                stack.append(f"{self._ctx.constants[node - NUM_FUNC]:f}")
            else:
                left  = stack.pop()
                right = stack.pop()
                stack.append(f"({left} {OPERATOR_SYMBOLS[node]} {right})")
        return stack[0], end

    def copy(self) -> 'GPTree':
        return GPTree(self._ctx, list(self.tree), self.mu.copy(), self.p)

    def crossover(self, other: 'GPTree') -> None:
        """
        Swap a uniformly chosen sub-tree of this tree with a uniformly chosen
        sub-tree of 'other'. Both trees are replaced by their offspring.

        Parameters:
            other: The second parent
        """
        start1 = random.randrange(self.len)
        end1   = traverse(self.tree, start1)
        start2 = random.randrange(other.len)
        end2   = traverse(other.tree, start2)

        child1 = self.tree[:start1] + other.tree[start2:end2] + self.tree[end1:]
        child2 = other.tree[:start2] + self.tree[start1:end1] + other.tree[end2:]

        self.tree  = child1
        other.tree = child2
        for t in (self, other):
            if traverse(t.tree, 0) != t.len:
                raise CorruptDataError("Crossover produced an incomplete tree")
        logger.debug(f"GP crossover: lengths {self.len}, {other.len}")

    def mutate(self) -> bool:
        """
        Point mutation: adapt the mutation rate, then with probability mu[0]
        replace each terminal by a random terminal and each operator by a
        random operator. The shape of the tree never changes.

        Returns:
            Whether any node was selected for mutation
        """
        sam_adapt(self.mu, MU_TYPE)
        changed = False
        for i in range(self.len):
            if random.random() < self.mu[0]:
                changed = True
                if self.tree[i] >= NUM_FUNC:
                    self.tree[i] = random.randrange(self._ctx.terminal_min, self._ctx.terminal_max)
                else:
                    self.tree[i] = random.randrange(0, NUM_FUNC)
        return changed

    def save(self, fp: BinaryIO) -> int:
        """
        Write the cursor, length, node codes and mutation rates.

        Returns:
            The number of elements written
        """
        s  = binio.write_ints(fp, [self.p, self.len])
        s += binio.write_ints(fp, self.tree)
        s += binio.write_doubles(fp, self.mu)
        return s

    @classmethod
    def load(cls, fp: BinaryIO, ctx: GPContext) -> 'GPTree':
        """
        Read a tree written by 'save'.

        Raises:
            CorruptDataError if the stored length is below 1, the file is
                             truncated, or the codes do not form a valid tree
        """
        p, length = (int(v) for v in binio.read_ints(fp, 2))
        if length < 1:
            raise CorruptDataError(f"Invalid GP tree length: {length}")
        tree = binio.read_ints(fp, length)
        mu   = binio.read_doubles(fp, len(MU_TYPE))
        return cls(ctx, tree, mu, p)

    def save_file(self, path: str | Path) -> int:
        with open(path, 'wb') as fp:
            return self.save(fp)

    @classmethod
    def load_file(cls, path: str | Path, ctx: GPContext) -> 'GPTree':
        with open(path, 'rb') as fp:
            return cls.load(fp, ctx)

    def __str__(self):
        return f"GP tree: {self.render(0)[0]}"

    def __repr__(self):
        return f"GPTree(len={self.len}, mu={self.mu[0]:.4f})"
