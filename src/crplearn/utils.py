import bisect

import numpy as np
from scipy import stats

__all__ = ['pick_discrete', 'sample_bernoulli', 'slice_sampler1d',
           'log_beta_density', 'log_gamma_density']


def pick_discrete(p, random_state):
    """Pick a discrete integer between 0 and len(p) - 1 with probability given by (normalized) p
    array.  Note that p array need not sum to one."""
    c = np.cumsum(p)
    u = random_state.uniform() * c[-1]
    return min(bisect.bisect(c, u), len(c) - 1)


def sample_bernoulli(p_a, p_b, random_state):
    """Weighted binary choice.

    Returns True with probability p_a / (p_a + p_b), using one uniform draw.
    """
    z = p_a + p_b
    return random_state.uniform() * z < p_a


def slice_sampler1d(log_f, x, random_state,
                    min_x=-np.inf,
                    max_x=np.inf,
                    w=0.0,
                    n_samples=1,
                    max_n_eval=200,
                    max_doublings=20):
    """Univariate slice sampler with the doubling procedure and shrinkage.

    Refs
    ----------
    Radford M. Neal. 2003. Slice sampling. The Annals of Statistics 31(3), 705-767.

    Parameters
    ----------
    log_f : callable
        Unnormalized log density, only evaluated strictly inside (min_x, max_x).

    x : float
        Current state, must satisfy min_x < x < max_x.

    random_state : object
        Random source with a `uniform()` method returning a float in [0, 1).

    min_x, max_x : float
        Support of the density.

    w : float, default=0.0
        Initial bracket width. If <= 0, a width is guessed from the support
        (finite case) or from the magnitude of x.

    n_samples : int, default=1
        Number of slice sampling transitions to run.

    max_n_eval : int, default=200
        Maximum number of evaluations of log_f.

    max_doublings : int, default=20
        Maximum number of times the bracket is doubled per transition.
        Running out of doublings means the density is likely improper.

    Return
    ----------
    x : float
        New state.
    """
    x = float(x)
    assert min_x < x < max_x, f"x={x} outside of ({min_x}, {max_x})"
    if w <= 0.0:
        if np.isfinite(min_x) and np.isfinite(max_x):
            w = (max_x - min_x) / 4
        else:
            w = max(abs(x) / 4, 0.1)
    assert np.isfinite(w)

    n_eval = 0

    def log_f_in_support(v):
        nonlocal n_eval
        if not min_x < v < max_x:
            return -np.inf
        n_eval += 1
        if n_eval > max_n_eval:
            raise RuntimeError(f"slice sampler exceeded {max_n_eval} evaluations")
        return log_f(v)

    log_fx = log_f_in_support(x)
    for _ in range(n_samples):
        log_y = log_fx + np.log1p(-random_state.uniform())

        # doubling
        xl = x - w * random_state.uniform()
        xr = xl + w
        log_fl = log_f_in_support(xl)
        log_fr = log_f_in_support(xr)
        n_doublings = 0
        while log_fl > log_y or log_fr > log_y:
            if n_doublings == max_doublings:
                raise RuntimeError(
                    f"slice sampler exceeded {max_doublings} doublings, the density may be improper")
            n_doublings += 1
            if random_state.uniform() < 0.5:
                xl -= xr - xl
                log_fl = log_f_in_support(xl)
            else:
                xr += xr - xl
                log_fr = log_f_in_support(xr)

        # shrinkage
        lo, hi = xl, xr
        while True:
            x1 = lo + random_state.uniform() * (hi - lo)
            log_fx1 = log_f_in_support(x1)
            if log_fx1 >= log_y and _accept_doubling(
                    log_f_in_support, log_y, x, x1, xl, xr, log_fl, log_fr, w):
                x = x1
                log_fx = log_fx1
                break
            if x1 < x:
                lo = x1
            else:
                hi = x1
    return x


def _accept_doubling(log_f, log_y, x0, x1, xl, xr, log_fl, log_fr, w):
    """Check that the doubling procedure started from x1 could have produced
    the bracket (xl, xr), so that the transition stays reversible."""
    differ = False
    while xr - xl > 1.1 * w:
        xm = (xl + xr) / 2
        if (x0 < xm) != (x1 < xm):
            differ = True
        if x1 < xm:
            xr = xm
            log_fr = log_f(xm)
        else:
            xl = xm
            log_fl = log_f(xm)
        if differ and log_y >= log_fl and log_y >= log_fr:
            return False
    return True


def log_beta_density(x, a, b):
    return stats.beta.logpdf(x, a, b).item()


def log_gamma_density(x, shape, rate):
    return stats.gamma.logpdf(x, shape, scale=1.0 / rate).item()
