from .utils import pick_discrete

__all__ = ['TableHistogram']


class TableHistogram:
    """Table occupancy histogram of a single dish.

    Tables serving the same dish are exchangeable, so only the number of
    tables holding each occupancy is tracked.

    Refs
    ----------
    Phil Blunsom, Trevor Cohn, Sharon Goldwater and Mark Johnson. 2009.
    A note on the implementation of hierarchical Dirichlet processes.
    In Proceedings of the ACL-IJCNLP 2009 Conference Short Papers, 337-340.
    """

    def __init__(self):
        self.n_customers_ = 0
        self.n_tables_ = 0
        # occupancy -> number of tables with that occupancy
        self.bins_ = {}

    def num_tables(self):
        return self.n_tables_

    def num_customers(self):
        return self.n_customers_

    def create_table(self):
        """Seat a customer at a new table."""
        self.bins_[1] = self.bins_.get(1, 0) + 1
        self.n_tables_ += 1
        self.n_customers_ += 1

    def share_table(self, discount, random_state):
        """Seat a customer at an existing table.

        A table with occupancy k is chosen with weight (k - discount).

        Parameters
        ----------
        discount : float
            Pitman-Yor discount.

        random_state : object
            Random source with a `uniform()` method.
        """
        assert self.n_customers_ > 0
        occupancies = list(self.bins_)
        weights = [(k - discount) * self.bins_[k] for k in occupancies]
        k = occupancies[pick_discrete(weights, random_state)]
        self._move(k, k + 1)
        self.n_customers_ += 1

    def remove_customer(self, random_state):
        """Remove a customer picked uniformly at random.

        Parameters
        ----------
        random_state : object
            Random source with a `uniform()` method.

        Return
        ----------
        delta : int
            `-1` if the customer's table was closed, `0` otherwise.
        """
        assert self.n_customers_ > 0, "cannot remove a customer from an empty histogram"
        occupancies = list(self.bins_)
        weights = [k * self.bins_[k] for k in occupancies]
        k = occupancies[pick_discrete(weights, random_state)]
        self.n_customers_ -= 1
        if k == 1:
            self._move(1, None)
            self.n_tables_ -= 1
            return -1
        self._move(k, k - 1)
        return 0

    def _move(self, src, dst):
        """Move one table from occupancy `src` to `dst` (None drops it)."""
        self.bins_[src] -= 1
        if self.bins_[src] == 0:
            del self.bins_[src]
        if dst is not None:
            self.bins_[dst] = self.bins_.get(dst, 0) + 1

    def items(self):
        """(occupancy, n_tables) pairs in increasing occupancy order."""
        return iter(sorted(self.bins_.items()))

    def __iter__(self):
        return self.items()

    def __len__(self):
        return len(self.bins_)

    def __str__(self):
        bins = ' '.join(f"{k}x{n}" for k, n in self.items())
        return f"[n_customers={self.n_customers_} n_tables={self.n_tables_} | {bins}]"

    def __repr__(self):
        return f"TableHistogram({dict(self.items())})"
