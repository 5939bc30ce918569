from functools import partial

import numpy as np
from scipy.special import gammaln
from sklearn.base import BaseEstimator
from sklearn.utils import check_random_state

from .histogram import TableHistogram
from .utils import log_beta_density, log_gamma_density, sample_bernoulli, slice_sampler1d

__all__ = ['Restaurant']


class Restaurant(BaseEstimator):
    """Chinese restaurant process with Pitman-Yor parameters.
    Histogram-based table tracking, where the observation likelihoods are
    assumed to be either 1 (the observation is identical to the dish drawn
    from the base distribution) or 0.

    Refs
    ----------
    Phil Blunsom, Trevor Cohn, Sharon Goldwater and Mark Johnson. 2009.
    A note on the implementation of hierarchical Dirichlet processes.
    In Proceedings of the ACL-IJCNLP 2009 Conference Short Papers, 337-340.

    Parameters
    ----------
    discount : float, default=0.8
        discount parameter, 0 <= discount < 1.
        `discount=0` gives a Dirichlet process.

    strength : float, default=1.0
        strength (concentration) parameter, strength > -discount.

    discount_prior_a : float, default=None
        first shape parameter of the beta prior on discount.
        The discount has no prior when None.

    discount_prior_b : float, default=None
        second shape parameter of the beta prior on discount.

    strength_prior_shape : float, default=None
        shape parameter of the gamma prior on (strength + discount).
        The strength has no prior when None.

    strength_prior_rate : float, default=None
        rate parameter of the gamma prior on (strength + discount).

    verbose : bool, default=False
        Controls the verbosity.

        - True : hyperparameters are displayed when resampled;
        - False : nothing is displayed;

    random_state : int, RandomState instance or None, default=0
        Seeds the random source used when none is passed to a method.

    Attributes
    ----------
    n_tables_ : int
        Total number of tables.

    n_customers_ : int
        Total number of customers.

    tables_ : dict
        dish -> TableHistogram, holding only dishes with customers.
    """

    def __init__(self,
                 discount=0.8,
                 strength=1.0,
                 discount_prior_a=None,
                 discount_prior_b=None,
                 strength_prior_shape=None,
                 strength_prior_rate=None,
                 verbose=False,
                 random_state=0):
        self.discount = float(discount)
        self.strength = float(strength)
        self.discount_prior_a = discount_prior_a
        self.discount_prior_b = discount_prior_b
        self.strength_prior_shape = strength_prior_shape
        self.strength_prior_rate = strength_prior_rate
        self.verbose = bool(verbose)
        self.random_state = random_state

        self.n_tables_ = 0
        self.n_customers_ = 0
        self.tables_ = {}
        self._rng = None

        self._check_params()
        self._check_hyperparameters()

    def _check_params(self):
        # discount prior
        if (self.discount_prior_a is None) != (self.discount_prior_b is None):
            raise ValueError(
                f"discount_prior_a and discount_prior_b must be given together, "
                f"got {self.discount_prior_a} and {self.discount_prior_b} instead.")
        if self.has_discount_prior() and (self.discount_prior_a <= 0 or self.discount_prior_b <= 0):
            raise ValueError(
                f"discount prior parameters must be > 0, "
                f"got {self.discount_prior_a} and {self.discount_prior_b} instead.")
        # strength prior
        if (self.strength_prior_shape is None) != (self.strength_prior_rate is None):
            raise ValueError(
                f"strength_prior_shape and strength_prior_rate must be given together, "
                f"got {self.strength_prior_shape} and {self.strength_prior_rate} instead.")
        if self.has_strength_prior() and (self.strength_prior_shape <= 0 or self.strength_prior_rate <= 0):
            raise ValueError(
                f"strength prior parameters must be > 0, "
                f"got {self.strength_prior_shape} and {self.strength_prior_rate} instead.")

    def _check_hyperparameters(self):
        if not 0.0 <= self.discount < 1.0:
            raise ValueError(
                f"discount must be in [0, 1), got {self.discount} instead.")
        if not self.strength > -self.discount:
            raise ValueError(
                f"strength must be > -discount ({-self.discount}), got {self.strength} instead.")

    def set_params(self, **params):
        """Set the parameters of this restaurant, then validate them.
        Invalid parameters are rolled back before the error is raised.
        The default random source is rebuilt from `random_state` on next use."""
        old_params = self.get_params(deep=False)
        super().set_params(**params)
        try:
            self._check_params()
            self._check_hyperparameters()
        except ValueError:
            super().set_params(**old_params)
            raise
        self._rng = None
        return self

    def _get_random_state(self, random_state):
        if random_state is not None:
            return random_state
        if self._rng is None:
            self._rng = check_random_state(self.random_state)
        return self._rng

    def set_hyperparameters(self, discount, strength):
        self.discount = float(discount)
        self.strength = float(strength)
        self._check_hyperparameters()

    def set_discount(self, discount):
        self.discount = float(discount)
        self._check_hyperparameters()

    def set_strength(self, strength):
        self.strength = float(strength)
        self._check_hyperparameters()

    def has_discount_prior(self):
        return self.discount_prior_a is not None

    def has_strength_prior(self):
        return self.strength_prior_shape is not None

    def clear(self):
        """Remove every customer. Hyperparameters and priors are kept."""
        self.n_tables_ = 0
        self.n_customers_ = 0
        self.tables_ = {}

    def num_tables(self, dish=None):
        if dish is None:
            return self.n_tables_
        hist = self.tables_.get(dish)
        return 0 if hist is None else hist.num_tables()

    def num_customers(self, dish=None):
        if dish is None:
            return self.n_customers_
        hist = self.tables_.get(dish)
        return 0 if hist is None else hist.num_customers()

    def increment(self, dish, p0, random_state=None):
        """Seat a customer eating `dish`.

        Parameters
        ----------
        dish : hashable
            dish of the customer.

        p0 : float
            probability of `dish` under the base distribution.

        random_state : object, default=None
            Random source with a `uniform()` method.
            The restaurant's own random source is used when None.

        Return
        ----------
        delta : int
            `1` if a new table was opened, `0` otherwise.
            A new table is where a hierarchical model seats `dish` in the parent restaurant.
        """
        hist = self.tables_.get(dish)
        share_table = False
        if hist is None:
            hist = self.tables_[dish] = TableHistogram()
        else:
            p_empty = (self.strength + self.n_tables_ * self.discount) * p0
            p_share = hist.num_customers() - hist.num_tables() * self.discount
            share_table = sample_bernoulli(p_share, p_empty, self._get_random_state(random_state))

        if share_table:
            hist.share_table(self.discount, self._get_random_state(random_state))
        else:
            hist.create_table()
            self.n_tables_ += 1
        self.n_customers_ += 1
        return 0 if share_table else 1

    def decrement(self, dish, random_state=None):
        """Remove a customer eating `dish`.

        Parameters
        ----------
        dish : hashable
            dish of the customer, must have at least one customer.

        random_state : object, default=None
            Random source with a `uniform()` method.
            The restaurant's own random source is used when None.

        Return
        ----------
        delta : int
            `-1` if a table was closed, `0` otherwise.
        """
        hist = self.tables_.get(dish)
        assert hist is not None, f"dish {dish!r} has no customers"
        if hist.num_customers() == 1:
            del self.tables_[dish]
            self.n_tables_ -= 1
            self.n_customers_ -= 1
            return -1

        delta = hist.remove_customer(self._get_random_state(random_state))
        self.n_customers_ -= 1
        if delta:
            self.n_tables_ -= 1
        return delta

    def prob(self, dish, p0):
        """Predictive probability that the next customer eats `dish`.

        Parameters
        ----------
        dish : hashable
            dish of the next customer.

        p0 : float
            probability of `dish` under the base distribution.
        """
        if self.n_customers_ == 0:
            return float(p0)
        r = self.n_tables_ * self.discount + self.strength
        hist = self.tables_.get(dish)
        if hist is None:
            return float(r * p0 / (self.n_customers_ + self.strength))
        return float((hist.num_customers() - self.discount * hist.num_tables() + r * p0) /
                     (self.n_customers_ + self.strength))

    def log_likelihood(self, discount=None, strength=None):
        """Log probability of the seating arrangement, plus the log prior
        densities of the hyperparameters when priors are set.
        Base distribution probabilities are not included.

        Parameters
        ----------
        discount : float, default=None
            discount to evaluate at. Current discount when None.

        strength : float, default=None
            strength to evaluate at. Current strength when None.
        """
        if discount is None:
            discount = self.discount
        if strength is None:
            strength = self.strength

        lp = 0.0
        if self.has_discount_prior():
            lp += log_beta_density(discount, self.discount_prior_a, self.discount_prior_b)
        if self.has_strength_prior():
            lp += log_gamma_density(strength + discount, self.strength_prior_shape, self.strength_prior_rate)

        if self.n_customers_:
            assert discount >= 0.0, f"discount less than 0 detected: {discount}"
            if discount > 0.0:
                # two parameter case
                r = gammaln(1.0 - discount)
                if strength:
                    lp += gammaln(strength) - gammaln(strength / discount)
                lp += - gammaln(strength + self.n_customers_) \
                    + self.n_tables_ * np.log(discount) \
                    + gammaln(strength / discount + self.n_tables_)
                assert np.isfinite(lp), f"non-finite log likelihood at discount={discount}, strength={strength}"
                for hist in self.tables_.values():
                    for occupancy, n_tables in hist.items():
                        lp += (gammaln(occupancy - discount) - r) * n_tables
            else:
                # Dirichlet process
                lp += gammaln(strength) + self.n_tables_ * np.log(strength) - gammaln(strength + self.n_tables_)
                assert np.isfinite(lp), f"non-finite log likelihood at discount={discount}, strength={strength}"
                for hist in self.tables_.values():
                    lp += gammaln(hist.num_tables())

        assert np.isfinite(lp), f"non-finite log likelihood at discount={discount}, strength={strength}"
        return float(lp)

    def resample_hyperparameters(self, random_state=None, n_loop=5, n_iterations=10):
        """Resample discount and strength from their posterior by alternating
        univariate slice sampling. Does nothing on an empty restaurant.

        Parameters
        ----------
        random_state : object, default=None
            Random source with a `uniform()` method.
            The restaurant's own random source is used when None.

        n_loop : int, default=5
            Number of rounds over the hyperparameters with a prior.

        n_iterations : int, default=10
            Number of slice sampling iterations per hyperparameter and round.
        """
        if not (self.has_discount_prior() or self.has_strength_prior()):
            raise ValueError(
                "resample_hyperparameters requires a prior on discount or strength, got none instead.")
        if self.n_customers_ == 0:
            return
        rng = self._get_random_state(random_state)
        max_n_eval = 100 * n_iterations

        for _ in range(n_loop):
            if self.has_strength_prior():
                self._resample_strength(rng, n_iterations, max_n_eval)
            if self.has_discount_prior():
                min_discount = max(0.0, -self.strength)
                log_f = partial(self.log_likelihood, strength=self.strength)
                discount = self.discount
                if discount <= min_discount:
                    # discount = 0 lies on the boundary of the support
                    discount = (min_discount + 1.0) / 2
                self.set_discount(slice_sampler1d(
                    log_f, discount, rng, min_discount, 1.0, 0.0, n_iterations, max_n_eval))
        self._resample_strength(rng, n_iterations, max_n_eval)

        if self.verbose:
            print(
                f"discount: {self.discount:.4f} -- strength: {self.strength:.4f}" +
                f" -- log_likelihood: {self.log_likelihood():.4f}", flush=True)

    def _resample_strength(self, rng, n_iterations, max_n_eval):
        log_f = partial(self.log_likelihood, self.discount)
        self.set_strength(slice_sampler1d(
            log_f, self.strength, rng, -self.discount, np.inf, 0.0, n_iterations, max_n_eval))

    def print_tables(self, file=None):
        """Print every dish with its table histogram."""
        print(f"PYP(d={self.discount},s={self.strength}) customers={self.n_customers_}", file=file, flush=True)
        for dish, hist in self.tables_.items():
            print(f"{dish} : {hist}", file=file, flush=True)

    def __iter__(self):
        return iter(self.tables_.items())

    def __contains__(self, dish):
        return dish in self.tables_

    def num_dishes(self):
        """Number of dishes with at least one customer."""
        return len(self.tables_)
