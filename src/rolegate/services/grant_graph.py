"""Grant graph: role assignments and ability grants with cache invalidation.

Every mutation holds the locks of the principals whose resolved grants it
can change, writes through the store, and invalidates those principals'
cache entries before releasing the locks. Invalidation runs even when the
write fails, since the store may have committed before raising.
"""

import logging
from typing import Iterable, List

from ..entities import Ability, GrantCache, GrantStore, Holder, PrincipalRef, Role
from .locks import LockRegistry

logger = logging.getLogger(__name__)


class GrantGraph:
    """Principal/role/ability edges over a GrantStore."""

    def __init__(self, store: GrantStore, cache: GrantCache, locks: LockRegistry):
        self.store = store
        self.cache = cache
        self.locks = locks

    async def _invalidate(self, principals: Iterable[PrincipalRef]) -> None:
        """Invalidate every principal, then re-raise the first failure."""
        error = None
        for principal in principals:
            try:
                await self.cache.invalidate(principal)
            except Exception as e:
                logger.error(f"Failed to invalidate cached grants for {principal}: {e}")
                if error is None:
                    error = e
        if error is not None:
            raise error

    async def _mutate_holder(self, holder: Holder, operation, ability: Ability) -> bool:
        if isinstance(holder, Role):
            async with self.locks.hold(roles=[holder.name]):
                principals = await self.store.principals_with_role(holder)
                async with self.locks.hold(principals=principals):
                    try:
                        return await operation(holder, ability)
                    finally:
                        await self._invalidate(principals)

        async with self.locks.hold(principals=[holder]):
            try:
                return await operation(holder, ability)
            finally:
                await self._invalidate([holder])

    async def grant(self, holder: Holder, ability: Ability) -> bool:
        """Grant an ability to a principal or role. Idempotent.

        Returns:
            True if a new edge was created
        """
        created = await self._mutate_holder(holder, self.store.grant, ability)
        if created:
            logger.info(f"Granted {ability} to {holder}")
        return created

    async def revoke(self, holder: Holder, ability: Ability) -> bool:
        """Remove one exact grant edge. No-op if absent.

        Returns:
            True if an edge was removed
        """
        removed = await self._mutate_holder(holder, self.store.revoke, ability)
        if removed:
            logger.info(f"Revoked {ability} from {holder}")
        else:
            logger.debug(f"No grant of {ability} to {holder} to revoke")
        return removed

    async def assign(self, principal: PrincipalRef, role: Role) -> bool:
        """Assign a role to a principal. Idempotent."""
        async with self.locks.hold(roles=[role.name], principals=[principal]):
            try:
                created = await self.store.assign(principal, role)
            finally:
                await self._invalidate([principal])

        if created:
            logger.info(f"Assigned role {role.name} to {principal}")
        return created

    async def unassign(self, principal: PrincipalRef, role: Role) -> bool:
        """Remove a role assignment, never the role itself. No-op if absent."""
        async with self.locks.hold(roles=[role.name], principals=[principal]):
            try:
                removed = await self.store.unassign(principal, role)
            finally:
                await self._invalidate([principal])

        if removed:
            logger.info(f"Retracted role {role.name} from {principal}")
        else:
            logger.debug(f"{principal} does not hold role {role.name}")
        return removed

    async def roles_of(self, principal: PrincipalRef) -> List[Role]:
        return await self.store.roles_of(principal)

    async def direct_abilities_of(self, holder: Holder) -> List[Ability]:
        return await self.store.direct_abilities_of(holder)

    async def principals_with_role(self, role: Role) -> List[PrincipalRef]:
        return await self.store.principals_with_role(role)
