# lifeline/feed.py
# ------------------------------------------------------------
# Live update feed (best-effort).
#
# Storage model:
# - updates:stream -> Redis list of JSON payloads, tail is newest
#   {"seq": 17, "type": "sos_created", "data": {...}}
# - updates:seq    -> counter, bumped once per publish
#
# The list is trimmed, so readers track their position by seq,
# never by list length.
#
# Publishing never raises: a dead Redis must not fail an SOS
# ingestion or a simulation tick.
# ------------------------------------------------------------

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import redis

from .logging_setup import get_logger

K_UPDATES = "updates:stream"
K_SEQ = "updates:seq"

log = get_logger("feed")


class UpdateFeed:
    def __init__(self, r: Optional[redis.Redis], max_len: int = 500):
        # r=None -> feed disabled, every call is a no-op
        self.r = r
        self.max_len = max_len

    @property
    def enabled(self) -> bool:
        return self.r is not None

    def publish(self, type_: str, data: Dict[str, Any]) -> bool:
        """
        Push one update; returns False when it could not be delivered.
        """
        if self.r is None:
            return False
        try:
            seq = int(self.r.incr(K_SEQ))
            self.r.rpush(K_UPDATES, json.dumps({"seq": seq, "type": type_, "data": data}))
            # keep last N
            self.r.ltrim(K_UPDATES, -self.max_len, -1)
            return True
        except redis.RedisError as exc:
            log.warning("[FEED] dropped {} update: {}", type_, exc)
            return False

    def length(self) -> int:
        if self.r is None:
            return 0
        return int(self.r.llen(K_UPDATES))

    def last_seq(self) -> int:
        if self.r is None:
            return 0
        return int(self.r.get(K_SEQ) or 0)

    def read_since(self, seq: int) -> List[Dict[str, Any]]:
        """
        Payloads published after `seq`, oldest first.
        Entries already trimmed from the list are skipped.
        """
        if self.r is None:
            return []
        missing = min(self.last_seq() - seq, self.max_len)
        if missing <= 0:
            return []
        items = self.read(-missing, -1)
        return [p for p in items if int(p.get("seq", 0)) > seq]

    def read(self, start: int, end: int) -> List[Dict[str, Any]]:
        """
        Decoded payloads in [start, end] (inclusive, like LRANGE).
        """
        if self.r is None:
            return []
        return [json.loads(raw) for raw in self.r.lrange(K_UPDATES, start, end)]

    def ping(self) -> bool:
        if self.r is None:
            return False
        try:
            return bool(self.r.ping())
        except redis.RedisError:
            return False

    def close(self) -> None:
        if self.r is not None:
            self.r.close()
