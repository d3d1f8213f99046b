"""
Stacked (blocked) vector layout

A stacked vector holds ``num_blocks`` vectors of length ``block_size`` in a
single flat tensor, shift-major::

    [ x_0[0] ... x_0[N-1] | x_1[0] ... x_1[N-1] | ... ]

Every piece of code that reads or writes a stacked vector goes through
:class:`BlockedVector` so that the layout is defined in exactly one place.
"""

import torch
from torch import Tensor

from .check import check_stacked


class BlockedVector:
    """
    Shift-major view of a flat stacked tensor.

    The wrapper never copies: :meth:`view` and :meth:`block` alias the
    underlying storage, so in-place updates through them are visible in
    ``data``.

    Parameters
    ----------
    data : Tensor
        [block_size * num_blocks] flat tensor
    block_size : int
        N, the length of one block
    num_blocks : int, optional
        N_s, checked against ``data`` when given
    """

    def __init__(self, data: Tensor, block_size: int, num_blocks: int = None):
        check_stacked("stacked vector", data, block_size, num_blocks)
        self.data = data
        self.block_size = block_size
        self.num_blocks = data.shape[0] // block_size

    @classmethod
    def empty(cls, block_size: int, num_blocks: int,
              dtype=None, device=None) -> 'BlockedVector':
        return cls(torch.empty(block_size * num_blocks, dtype=dtype, device=device),
                   block_size, num_blocks)

    def __len__(self) -> int:
        return self.data.shape[0]

    def __repr__(self) -> str:
        return (f"BlockedVector(num_blocks={self.num_blocks}, "
                f"block_size={self.block_size}, dtype={self.data.dtype}, "
                f"device={self.data.device})")

    def block(self, i: int) -> int:
        """Block (shift) index of flat index ``i``."""
        return i // self.block_size

    def within(self, i: int) -> int:
        """Offset of flat index ``i`` inside its block."""
        return i % self.block_size

    def flat_index(self, block: int, offset: int) -> int:
        return block * self.block_size + offset

    def view(self) -> Tensor:
        """[num_blocks, block_size] view sharing storage with ``data``."""
        return self.data.view(self.num_blocks, self.block_size)

    def __getitem__(self, block: int) -> Tensor:
        return self.view()[block]
