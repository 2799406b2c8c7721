"""Premium account pool with atomic quota reservation."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from clinical_resolver.core.interfaces import Account, AccountManager

logger = logging.getLogger(__name__)


@dataclass
class AccountQuota:
    """Quota state of one premium account."""

    account_id: str
    provider_id: str
    provider: str
    request_limit: int
    used: int = 0
    active: bool = True

    @property
    def remaining(self) -> int:
        return max(0, self.request_limit - self.used)

    def is_available(self) -> bool:
        return self.active and self.remaining > 0


class AccountPool(AccountManager):
    """Reserves premium accounts one request at a time."""

    def __init__(self, accounts: list[AccountQuota] | None = None):
        """Initialize account pool.

        Args:
            accounts: Account quotas to manage
        """
        self._accounts: dict[str, AccountQuota] = {}
        self._lock = asyncio.Lock()
        for quota in accounts or []:
            self._accounts[quota.account_id] = quota
        logger.info(f"AccountPool initialized with {len(self._accounts)} accounts")

    @classmethod
    def from_config(cls, items: list[dict[str, Any]]) -> "AccountPool":
        """Build a pool from config dicts.

        Args:
            items: Dicts with account_id, provider_id, provider, request_limit

        Returns:
            AccountPool
        """
        return cls(
            [
                AccountQuota(
                    account_id=item["account_id"],
                    provider_id=item["provider_id"],
                    provider=item.get("provider", item["provider_id"]),
                    request_limit=int(item.get("request_limit", 100)),
                    active=item.get("active", True),
                )
                for item in items
            ]
        )

    async def select_best_account(self, provider_id: str) -> Account | None:
        """Reserve the account with the most remaining quota.

        The check and the decrement happen under one lock, so concurrent
        callers can never reserve more requests than an account allows.

        Args:
            provider_id: Logical provider id

        Returns:
            Reserved account, or None if every account is exhausted
        """
        async with self._lock:
            candidates = [
                quota for quota in self._accounts.values()
                if quota.provider_id == provider_id and quota.is_available()
            ]
            if not candidates:
                logger.warning(f"No available account for provider {provider_id}")
                return None

            best = max(candidates, key=lambda q: q.remaining)
            best.used += 1

        logger.debug(f"Reserved account {best.account_id} ({best.remaining} requests left)")
        return Account(account_id=best.account_id, provider_id=best.provider_id, provider=best.provider)

    def set_active(self, account_id: str, active: bool) -> None:
        """Enable or disable an account."""
        self._accounts[account_id].active = active
        logger.info(f"Account {account_id} {'enabled' if active else 'disabled'}")

    def get_usage_stats(self) -> dict[str, Any]:
        """Get per-account usage.

        Returns:
            Dict keyed by account id
        """
        return {
            account_id: {
                "provider_id": quota.provider_id,
                "provider": quota.provider,
                "used": quota.used,
                "limit": quota.request_limit,
                "remaining": quota.remaining,
                "active": quota.active,
            }
            for account_id, quota in self._accounts.items()
        }
