from datetime import timedelta
from typing import cast

import redis  # type: ignore[import-untyped]

from tickit.services._shared.ports import EphemeralStore


class RedisEphemeralStore(EphemeralStore):
    """
    Redis-backed TTL store.

    Expiry is delegated to Redis (``PX``); set-if-absent uses ``NX`` so two
    concurrent writers for the same key cannot both succeed. The client is
    expected to be created with ``decode_responses=True``.
    """

    def __init__(self, r: redis.Redis):
        self.r = r

    def get(self, key: str) -> str | None:
        value = self.r.get(key)
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return cast(str | None, value)

    def set(
        self, key: str, value: str, *, ttl: timedelta, only_if_absent: bool = False
    ) -> bool:
        ms = int(ttl.total_seconds() * 1000)
        if ms <= 0:
            raise ValueError("ttl must be positive.")
        # SET returns None when NX refuses the write
        return bool(self.r.set(key, value, px=ms, nx=only_if_absent))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return cast(int, self.r.delete(*keys))
