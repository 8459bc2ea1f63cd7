"""Per-worker generator of randomized sample records."""

from __future__ import annotations

import random

from .config import CHARSET, RECORD_TEXT_LENGTH
from .schema import Record


class RecordProvider:
    """Produces a fresh random payload for every write sample.

    One provider per worker: it owns its RNG and a single ``Record`` that is
    overwritten on each call, so the record returned by :meth:`sample` is only
    valid until the next call.
    """

    def __init__(self, seed: int | None = None, length: int = RECORD_TEXT_LENGTH):
        # random.Random(None) seeds from OS entropy
        self._rng = random.Random(seed)
        self._length = length
        self.record = Record()

    def sample(self) -> Record:
        self.record.text = "".join(self._rng.choices(CHARSET, k=self._length))
        return self.record
