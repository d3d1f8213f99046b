"""
Shift transforms for multi-shift Conjugate Gradient (CG-M)

These are the per-shift recurrences of Jegerlehner's shifted CG
(B. Jegerlehner, "Krylov space solvers for shifted linear systems",
arXiv:hep-lat/9612014). They advance every shifted system from the scalars
of the single unshifted CG iteration, without extra matrix-vector products.

Notation: ``*_s`` tensors are [N_s] (one entry per shift), ``r`` is [N] and
``x_s``/``p_s`` are [N * N_s] stacked vectors (see :mod:`torch_cgm.blocked`).
``beta_*``/``alpha_*`` scalars are the unshifted CG coefficients and may be
python numbers or 0-d tensors.

All shapes are validated before anything is computed, so a mismatch raises
:class:`~torch_cgm.check.ShapeException` with every output untouched.
"""

from torch import Tensor
from typing import Optional, Union

from .blocked import BlockedVector
from .check import check_same_dimensions, check_vector

Scalar = Union[float, complex, Tensor]


def _store(value: Tensor, out: Optional[Tensor]) -> Tensor:
    if out is None:
        return value
    return out.copy_(value)


def compute_next_zeta(z_0_s: Tensor, z_m1_s: Tensor, sigma: Tensor,
                      beta_m1: Scalar, beta_0: Scalar, alpha_0: Scalar,
                      out: Optional[Tensor] = None) -> Tensor:
    r"""
    Next shifted :math:`\zeta` for every shift

    .. math::
        \zeta_1^\sigma = \frac{\zeta_0^\sigma \zeta_{-1}^\sigma \beta_{-1}}
        {\beta_0 \alpha_0 (\zeta_{-1}^\sigma - \zeta_0^\sigma)
        + \beta_{-1} \zeta_{-1}^\sigma (1 - \beta_0 \sigma)}

    Parameters
    ----------
    z_0_s : Tensor
        [N_s] current :math:`\zeta_0^\sigma`
    z_m1_s : Tensor
        [N_s] previous :math:`\zeta_{-1}^\sigma`
    sigma : Tensor
        [N_s] shifts
    beta_m1, beta_0, alpha_0 : scalar
        unshifted CG coefficients of the previous and current iteration
    out : Tensor, optional
        [N_s] overwritten with the result

    Returns
    -------
    Tensor
        [N_s] :math:`\zeta_1^\sigma`
    """
    if out is None:
        check_same_dimensions(z_0_s=z_0_s, z_m1_s=z_m1_s, sigma=sigma)
    else:
        check_same_dimensions(z_0_s=z_0_s, z_m1_s=z_m1_s, sigma=sigma, z_1_s=out)

    numer = z_0_s * z_m1_s * beta_m1
    denom = beta_0 * alpha_0 * (z_m1_s - z_0_s) + beta_m1 * z_m1_s * (1 - beta_0 * sigma)
    return _store(numer / denom, out)


def compute_next_beta_sigma(z_1_s: Tensor, z_0_s: Tensor, beta_0: Scalar,
                            out: Optional[Tensor] = None) -> Tensor:
    r"""
    Shifted step length :math:`\beta_0^\sigma = \beta_0 \zeta_1^\sigma / \zeta_0^\sigma`

    Returns
    -------
    Tensor
        [N_s]
    """
    if out is None:
        check_same_dimensions(z_1_s=z_1_s, z_0_s=z_0_s)
    else:
        check_same_dimensions(z_1_s=z_1_s, z_0_s=z_0_s, beta_0_s=out)
    return _store(beta_0 * z_1_s / z_0_s, out)


def compute_next_alpha_sigma(z_0_s: Tensor, z_1_s: Tensor, beta_0_s: Tensor,
                             beta_0: Scalar, alpha_0: Scalar,
                             out: Optional[Tensor] = None) -> Tensor:
    r"""
    Shifted direction coefficient
    :math:`\alpha_0^\sigma = (\alpha_0/\beta_0)\,\zeta_1^\sigma \beta_0^\sigma / \zeta_0^\sigma`

    Only the ratio ``alpha_0 / beta_0`` enters.

    Returns
    -------
    Tensor
        [N_s]
    """
    if out is None:
        check_same_dimensions(z_0_s=z_0_s, z_1_s=z_1_s, beta_0_s=beta_0_s)
    else:
        check_same_dimensions(z_0_s=z_0_s, z_1_s=z_1_s, beta_0_s=beta_0_s, alpha_0_s=out)
    return _store(alpha_0 / beta_0 * z_1_s * beta_0_s / z_0_s, out)


def update_shifted_solution_and_direction(alpha_0_s: Tensor, z_1_s: Tensor, beta_0_s: Tensor,
                                          r: Tensor, x_s: Tensor, p_s: Tensor):
    r"""
    Advance the stacked solutions and search directions in place

    For shift block ``s`` and in-block offset ``k``::

        x_s[s, k] <- x_s[s, k] - beta_0_s[s] * p_s[s, k]
        p_s[s, k] <- z_1_s[s] * r[k] + alpha_0_s[s] * p_s[s, k]

    The ``x`` update uses ``p_s`` from before its own update.

    Parameters
    ----------
    alpha_0_s, z_1_s, beta_0_s : Tensor
        [N_s]
    r : Tensor
        [N] unshifted residual
    x_s, p_s : Tensor
        [N * N_s] stacked vectors, updated in place
    """
    check_same_dimensions(alpha_0_s=alpha_0_s, z_1_s=z_1_s, beta_0_s=beta_0_s)
    check_vector("r", r)
    n, n_s = r.shape[0], alpha_0_s.shape[0]
    x_view = BlockedVector(x_s, n, n_s).view()
    p_view = BlockedVector(p_s, n, n_s).view()

    x_view.sub_(beta_0_s.unsqueeze(1) * p_view)
    p_view.mul_(alpha_0_s.unsqueeze(1)).add_(z_1_s.unsqueeze(1) * r.unsqueeze(0))


def broadcast_replicate(source: Tensor, dest: Tensor) -> Tensor:
    """
    Copy ``source`` into every block of the stacked ``dest``

    ``dest[i] = source[i % N]`` for ``N = len(source)``.

    Parameters
    ----------
    source : Tensor
        [N]
    dest : Tensor
        [N * N_s], overwritten

    Returns
    -------
    Tensor
        dest
    """
    check_vector("source", source)
    blocked = BlockedVector(dest, source.shape[0])
    blocked.view().copy_(source.unsqueeze(0).expand(blocked.num_blocks, -1))
    return dest
