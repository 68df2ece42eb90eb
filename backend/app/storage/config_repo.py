"""System configuration repository."""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert

from app.storage.database import SystemConfigTable, get_database

KEY_SUPPORTED_PAIRS = "supported_pairs"
KEY_LAST_PRICE_UPDATE = "last_price_update"
KEY_LAST_INDICATOR_UPDATE = "last_indicator_update"


class SystemConfigRepository:
    """Repository for system_config key/value rows."""

    async def get_values(self, keys: list[str]) -> dict[str, str | None]:
        """Get config values for the given keys (missing keys are absent)."""
        async with get_database().session() as session:
            stmt = select(
                SystemConfigTable.config_key, SystemConfigTable.config_value
            ).where(SystemConfigTable.config_key.in_(keys))
            result = await session.execute(stmt)
            return {key: value for key, value in result.all()}

    async def touch(self, key: str, now: datetime | None = None) -> None:
        """Store the current time as the value of ``key``.

        Update only: the key is expected to be provisioned.
        """
        now = now or datetime.now(timezone.utc)
        async with get_database().session() as session:
            stmt = (
                update(SystemConfigTable)
                .where(SystemConfigTable.config_key == key)
                .values(config_value=now.isoformat(), updated_at=now)
            )
            await session.execute(stmt)

    async def set_value(self, key: str, value: str) -> None:
        """Insert or overwrite a config value."""
        now = datetime.now(timezone.utc)
        async with get_database().session() as session:
            stmt = insert(SystemConfigTable).values(
                config_key=key, config_value=value, updated_at=now
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["config_key"],
                set_={"config_value": value, "updated_at": now},
            )
            await session.execute(stmt)
