"""Named monotonic counters for human-readable numbers.

Order numbers and transaction display ids are drawn from a Sequence inside
the unit of work that persists the numbered record, so allocation and the
record itself commit together.
"""

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from commerce.domain import commerce


@commerce.aggregate
class Sequence:
    name = String(identifier=True, max_length=100)
    last_value = Integer(default=0, min_value=0)

    def next_value(self):
        self.last_value += 1
        return self.last_value


def next_sequence_value(name):
    """Allocate the next value of the named sequence, creating it on first use."""
    repo = current_domain.repository_for(Sequence)
    try:
        sequence = repo.get(name)
    except ObjectNotFoundError:
        sequence = Sequence(name=name, last_value=0)

    value = sequence.next_value()
    repo.add(sequence)
    return value
