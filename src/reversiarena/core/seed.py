"""SeedManager — per-agent, per-match RNG for machine deciders.

The session hands every StrategyAgent a fresh ``random.Random`` at the
start of each match. Its seed is an HMAC-SHA256 of ``"<agent>:<match>"``
keyed by the session seed, so a match replays identically from the same
config, and renaming one agent or adding matches leaves every other
agent's stream untouched.
"""

import hashlib
import hmac
import random


class SeedManager:
    """Produces deterministic, isolated Random instances for machine agents."""

    def __init__(self, session_seed: int):
        self._session_seed = session_seed

    def get_match_seed(self, agent_name: str, match_number: int) -> int:
        """Derive a seed via HMAC. Same inputs always produce the same seed."""
        key = self._session_seed.to_bytes(8, byteorder="big", signed=True)
        msg = f"{agent_name}:{match_number}".encode("utf-8")
        digest = hmac.new(key, msg, hashlib.sha256).digest()
        return int.from_bytes(digest[:8], byteorder="big")

    def get_rng(self, match_seed: int) -> random.Random:
        """Return an isolated Random instance. Never touches global state."""
        return random.Random(match_seed)

    def rng_for(self, agent_name: str, match_number: int) -> random.Random:
        """The RNG ``agent_name`` decides with during match ``match_number``."""
        return self.get_rng(self.get_match_seed(agent_name, match_number))
