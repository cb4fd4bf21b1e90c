"""Shard configurations: which replica group serves each shard."""

from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

log = logging.getLogger(__name__)

NSHARDS = 12
NUM_FIRST = 1
GID1 = 1

_FNV32_OFFSET = 0x811C9DC5
_FNV32_PRIME = 0x01000193


class ConfigError(Exception):
    """A configuration is malformed or an operation on it is invalid."""


def key2shard(key: str) -> int:
    """Return the shard a key belongs to."""
    h = _FNV32_OFFSET
    for byte in key.encode("utf-8"):
        h ^= byte
        h = (h * _FNV32_PRIME) & 0xFFFFFFFF
    return h % NSHARDS


@dataclass
class ShardConfig:
    """A numbered assignment of shards to groups, and of groups to servers."""

    num: int = 0
    shards: list[int] = field(default_factory=lambda: [0] * NSHARDS)
    groups: dict[int, list[str]] = field(default_factory=dict)

    def to_string(self) -> str:
        """Serialize to compact JSON."""
        return json.dumps(
            {
                "Num": self.num,
                "Shards": list(self.shards),
                "Groups": {str(gid): list(srvs) for gid, srvs in sorted(self.groups.items())},
            },
            separators=(",", ":"),
        )

    def __str__(self) -> str:
        return self.to_string()

    def copy(self) -> ShardConfig:
        return ShardConfig(
            num=self.num,
            shards=list(self.shards),
            groups={gid: list(srvs) for gid, srvs in self.groups.items()},
        )

    def _analyze(self) -> tuple[int, int, int, int]:
        """Return (most loaded gid, its count, least loaded gid, its count)."""
        counts = Counter(self.shards)
        most_n, most_g = -1, -1
        least_n, least_g = 257, -1
        for g in sorted(self.groups):
            if counts[g] < least_n:
                least_n, least_g = counts[g], g
            if counts[g] > most_n:
                most_n, most_g = counts[g], g
        return most_g, most_n, least_g, least_n

    def rebalance(self) -> None:
        """Balance the assignment of shards to groups, in place."""
        if not self.groups:
            self.shards = [0] * NSHARDS
            return

        for s, g in enumerate(self.shards):
            if g not in self.groups:
                self.shards[s] = self._analyze()[2]

        while True:
            most_g, most_n, least_g, least_n = self._analyze()
            if most_n < least_n + 2:
                break
            self.shards[self.shards.index(most_g)] = least_g

    def join(self, servers: Mapping[int, Iterable[str]]) -> bool:
        """Add groups; return False if one of them is already present."""
        changed = False
        for gid, srvs in servers.items():
            srvs = list(srvs)
            if gid in self.groups:
                log.info("re-Join %s", gid)
                return False
            for xgid, xservers in self.groups.items():
                for s in xservers:
                    if s in srvs:
                        raise ConfigError(
                            f"Join({gid}) puts server {s} in groups {xgid} and {gid}"
                        )
            self.groups[gid] = srvs
            changed = True
        if not changed:
            raise ConfigError("Join but no change")
        self.num += 1
        return True

    def leave(self, gids: Iterable[int]) -> bool:
        """Remove groups; return False if one of them is not present."""
        changed = False
        for gid in gids:
            if gid not in self.groups:
                log.info("Leave(%s) but not in config", gid)
                return False
            del self.groups[gid]
            changed = True
        if not changed:
            raise ConfigError("Leave but no change")
        self.num += 1
        return True

    def join_balance(self, servers: Mapping[int, Iterable[str]]) -> bool:
        if not self.join(servers):
            return False
        self.rebalance()
        return True

    def leave_balance(self, gids: Iterable[int]) -> bool:
        if not self.leave(gids):
            return False
        self.rebalance()
        return True

    def gid_servers(self, shard: int) -> tuple[int, list[str], bool]:
        """Return (gid, servers, found) for the group serving a shard."""
        gid = self.shards[shard]
        srvs = self.groups.get(gid)
        if srvs is None:
            return gid, [], False
        return gid, srvs, True

    def is_member(self, gid: int) -> bool:
        """True if the group serves at least one shard."""
        return gid in self.shards

    def check_config(self, groups: Iterable[int]) -> None:
        """Raise ConfigError unless exactly these groups exist and shards are balanced."""
        groups = list(groups)
        if len(self.groups) != len(groups):
            raise ConfigError(f"wanted {len(groups)} groups, got {len(self.groups)}")
        for g in groups:
            if g not in self.groups:
                raise ConfigError(f"missing group {g}")
        if groups:
            for s, g in enumerate(self.shards):
                if g not in self.groups:
                    raise ConfigError(f"shard {s} -> invalid group {g}")
        counts = Counter(self.shards)
        lowest, highest = 257, 0
        for g in self.groups:
            highest = max(highest, counts[g])
            lowest = min(lowest, counts[g])
        if highest > lowest + 1:
            raise ConfigError(f"max {highest} too much larger than min {lowest}")


def from_string(s: str) -> ShardConfig:
    """Parse a configuration produced by ShardConfig.to_string."""
    try:
        data = json.loads(s)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"cannot parse configuration: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object")
    try:
        shards = [int(g) for g in (data.get("Shards") or [])][:NSHARDS]
        shards += [0] * (NSHARDS - len(shards))
        groups = {int(gid): list(srvs or []) for gid, srvs in (data.get("Groups") or {}).items()}
        num = int(data.get("Num") or 0)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"malformed configuration: {exc}") from exc
    return ShardConfig(num=num, shards=shards, groups=groups)