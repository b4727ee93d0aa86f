import asyncio
from collections.abc import Iterable

import structlog

from app.providers.base import OrganizationDirectory, TriggerConfigSource

logger = structlog.get_logger(__name__)


def parse_name_list(value: str | Iterable[str] | None) -> set[str]:
    """Split a whitespace separated list of names, dropping empty entries."""
    if value is None:
        return set()
    if isinstance(value, str):
        value = value.split()
    return {name for name in value if name}


class AccessPolicy:
    """Decides who may cause a build to run for one project.

    Usernames are compared exactly, including case.
    """

    def __init__(
        self,
        admins: str | Iterable[str] | None,
        whitelisted: str | Iterable[str] | None,
        organizations: str | Iterable[str] | None,
        directory: OrganizationDirectory | None,
        config_source: TriggerConfigSource | None = None,
        permit_all: bool = False,
    ):
        self._admins = parse_name_list(admins)
        self._whitelisted = parse_name_list(whitelisted)
        self._organizations = parse_name_list(organizations)
        self._directory = directory
        self._config_source = config_source
        self.permit_all = permit_all
        self._lock = asyncio.Lock()

    @property
    def admins(self) -> frozenset[str]:
        return frozenset(self._admins)

    @property
    def whitelisted(self) -> frozenset[str]:
        return frozenset(self._whitelisted)

    @property
    def organizations(self) -> frozenset[str]:
        return frozenset(self._organizations)

    def is_admin(self, user: str) -> bool:
        return user in self._admins

    async def is_authorized(self, user: str) -> bool:
        if self.permit_all:
            return True
        if user in self._whitelisted or user in self._admins:
            return True
        return await self._is_in_organization(user)

    async def _is_in_organization(self, user: str) -> bool:
        if not self._organizations or self._directory is None:
            return False

        for org in sorted(self._organizations):
            try:
                if await self._directory.is_organization_member(org, user):
                    return True
            except Exception as e:
                logger.warning(
                    "Organization membership check failed, treating as non-member",
                    org=org,
                    user=user,
                    error=str(e),
                )
        return False

    async def grant_whitelist(self, user: str) -> bool:
        """Whitelist ``user`` for this process and in the stored configuration.

        The in-memory grant is kept even when storing it fails; the return
        value tells the caller whether the grant is durable.
        """
        if not user:
            return False

        async with self._lock:
            logger.info("Adding user to whitelist", user=user)
            self._whitelisted.add(user)

            if self._config_source is None:
                return True

            try:
                await self._config_source.persist_whitelist_addition(user)
            except Exception as e:
                logger.error(
                    "Failed to persist whitelist addition",
                    user=user,
                    error=str(e),
                )
                return False

        return True
