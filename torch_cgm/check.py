import torch 


class ShapeException(ValueError):
    def __init__(self, name, shape, expected_shape):
        self.name = name
        self.shape = shape
        self.expected_shape = expected_shape
        super().__init__(f"{name} has shape {shape} expected {expected_shape}")


def check_coo(val:torch.Tensor,
              row:torch.Tensor, 
              col:torch.Tensor,
              shape:tuple
              ):
    """
    Check the COO format

    Parameters
    ----------

    val: torch.Tensor
        [nnz] values of the sparse matrix
    row: torch.Tensor
        [nnz] row indices of the sparse matrix
    col: torch.Tensor
        [nnz] column indices of the sparse matrix
    shape: tuple
        (m,n) shape of the sparse matrix

    """
    if not row.ndim == 1:
        raise ShapeException("row", row.shape, "[nnz]")
    if not col.ndim == 1:
        raise ShapeException("col", col.shape, "[nnz]")
    if not val.shape[0] == row.shape[0]:
        raise ShapeException("val", val.shape, "[nnz]")
    if not val.shape[0] == col.shape[0]:
        raise ShapeException("val", val.shape, "[nnz]")
    if not (len(shape) == 2 and shape[0] > 0 and shape[1] > 0):
        raise ShapeException("shape", shape, "(m,n)")


def check_vector(name:str, x:torch.Tensor, length:int=None):
    """
    Check that ``x`` is a 1D tensor, optionally of a given length
    """
    if not x.ndim == 1:
        raise ShapeException(name, tuple(x.shape), "[n]" if length is None else f"[{length}]")
    if length is not None and x.shape[0] != length:
        raise ShapeException(name, tuple(x.shape), f"[{length}]")


def check_same_dimensions(**tensors:torch.Tensor):
    """
    Check that all keyword tensors are 1D with the same length

    The first tensor sets the expected length.

    >>> check_same_dimensions(z_0_s=z_0_s, z_m1_s=z_m1_s, sigma=sigma)
    """
    length = None
    for name, x in tensors.items():
        if length is None:
            check_vector(name, x)
            length = x.shape[0]
        else:
            check_vector(name, x, length)


def check_square(name:str, shape:tuple):
    """
    Check that an operator shape is square
    """
    if not (len(shape) == 2 and shape[0] == shape[1] and shape[0] > 0):
        raise ShapeException(name, tuple(shape), "(n,n)")


def check_stacked(name:str, x:torch.Tensor, block_size:int, num_blocks:int=None):
    """
    Check a stacked vector of ``num_blocks`` contiguous blocks of length ``block_size``

    Parameters
    ----------
    name: str
        name reported in the exception
    x: torch.Tensor
        [block_size * num_blocks] stacked vector
    block_size: int
        length of one block
    num_blocks: int, optional
        expected number of blocks, any positive number if None
    """
    if block_size <= 0:
        raise ShapeException(name, tuple(x.shape), "[N * N_s] with N > 0")
    if num_blocks is None:
        check_vector(name, x)
        if x.shape[0] == 0 or x.shape[0] % block_size != 0:
            raise ShapeException(name, tuple(x.shape), f"[{block_size} * N_s]")
    else:
        check_vector(name, x, block_size * num_blocks)
