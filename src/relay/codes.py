"""Session code allocation.

Codes are 4-digit decimal strings in ``1000..9999``, a space of 9000
codes. With ``n`` active sessions a random draw collides with
probability ``n / 9000``, so the expected number of draws is
``9000 / (9000 - n)``: about 1.1 at 1000 sessions, 2 at 4500. Past a
few thousand concurrent sessions the space is marginal; widen
``low``/``high`` if that load is expected.
"""
import random
from typing import Collection, Optional

from src.relay.errors import CodeSpaceExhaustedError

CODE_MIN = 1000
CODE_MAX = 9999


class CodeGenerator:
    """Draws random codes that are not currently active."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        low: int = CODE_MIN,
        high: int = CODE_MAX,
    ) -> None:
        if low > high:
            raise ValueError("low must not exceed high")
        self._rng = rng or random.Random()
        self._low = low
        self._high = high

    @property
    def space_size(self) -> int:
        return self._high - self._low + 1

    def generate(self, active: Collection[str], active_count: Optional[int] = None) -> str:
        """Return a code not contained in ``active``.

        Args:
            active: Codes held by live sessions.
            active_count: Number of live sessions, defaults to
                ``len(active)``; used to detect a full code space before
                looping.

        Raises:
            CodeSpaceExhaustedError: If every code is taken.
        """
        if active_count is None:
            active_count = len(active)
        if active_count >= self.space_size:
            raise CodeSpaceExhaustedError()
        while True:
            code = str(self._rng.randint(self._low, self._high))
            if code not in active:
                return code
