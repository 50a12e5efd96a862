"""Redis-backed DeliveryCodeStore.

One hash per order (``code``, ``expires_at``, ``attempts``) with a key
TTL, so Redis does the expiry.  A hash without ``code`` reads as missing.
"""

from __future__ import annotations

from datetime import datetime, timezone

import redis

from olm.domain.repository.delivery_code_store import DeliveryCode, DeliveryCodeStore


class RedisDeliveryCodeStore(DeliveryCodeStore):

    def __init__(self, client: redis.Redis, prefix: str = "olm:delivery-code") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str) -> RedisDeliveryCodeStore:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def save(self, order_id: str, code: DeliveryCode) -> None:
        key = self._key(order_id)
        ttl = int((code.expires_at - datetime.now(timezone.utc)).total_seconds())
        pipe = self._client.pipeline(transaction=True)
        pipe.delete(key)
        pipe.hset(
            key,
            mapping={
                "code": code.code,
                "expires_at": code.expires_at.isoformat(),
                "attempts": code.attempts,
            },
        )
        pipe.expire(key, max(ttl, 1))
        pipe.execute()

    def get(self, order_id: str) -> DeliveryCode | None:
        raw = self._client.hgetall(self._key(order_id))
        if "code" not in raw:
            return None
        return DeliveryCode(
            code=raw["code"],
            expires_at=datetime.fromisoformat(raw["expires_at"]),
            attempts=int(raw.get("attempts", 0)),
        )

    def record_failure(self, order_id: str) -> int:
        key = self._key(order_id)

        # Only counts while the code exists; WATCH retries if the key
        # expires or is replaced in between.
        def increment(pipe: redis.client.Pipeline) -> None:
            if pipe.hexists(key, "code"):
                pipe.multi()
                pipe.hincrby(key, "attempts", 1)

        result = self._client.transaction(increment, key)
        return int(result[0]) if result else 0

    def delete(self, order_id: str) -> None:
        self._client.delete(self._key(order_id))

    def _key(self, order_id: str) -> str:
        return f"{self._prefix}:{order_id}"
