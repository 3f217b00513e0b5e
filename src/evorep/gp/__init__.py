"""
GP Package

This package implements tree-based genetic programming over arithmetic
expressions, with terminals drawn from the inputs and from a pool of
constants shared by every tree of a run.

Modules:
    context: GPContext, the shared constant pool and growth limits
    tree:    GPTree and the traversal / growth helpers

Exported:
    GPContext: Shared, read-only state for a population of trees
    GPTree:    A prefix-encoded arithmetic expression tree
    traverse:  Index just past a sub-tree
    grow:      Randomly grow a tree into a buffer
    ADD, SUB, MUL, DIV, NUM_FUNC: Operator codes
"""

from evorep.gp.context import GPContext, NUM_FUNC
from evorep.gp.tree    import ADD, SUB, MUL, DIV, GPTree, grow, traverse

__all__ = ['ADD',
           'DIV',
           'GPContext',
           'GPTree',
           'MUL',
           'NUM_FUNC',
           'SUB',
           'grow',
           'traverse']
