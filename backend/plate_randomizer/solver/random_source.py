"""Injectable sources of randomness."""
import random
from typing import Optional


class RandomSource:
    """Three independent generators used by the engine.

    ``member`` shuffles the members of each covariate group before the
    proportional phase (and the sample order of the greedy algorithm),
    ``container`` shuffles container order before overflow placement, and
    ``row`` shuffles samples within a row before they are written to cells
    (and breaks ties during spatial placement).

    Passing a seed derives all three from it, so a run is reproducible.
    Any of them can be replaced individually for testing.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        member: Optional[random.Random] = None,
        container: Optional[random.Random] = None,
        row: Optional[random.Random] = None,
    ):
        self.seed = seed
        master = random.Random(seed)
        self.member = member or random.Random(master.getrandbits(64))
        self.container = container or random.Random(master.getrandbits(64))
        self.row = row or random.Random(master.getrandbits(64))

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed!r})"
