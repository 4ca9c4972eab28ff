"""
Seed the built-in instrument configurations (Equipment Financing is marked default).
Run: python -m scripts.seed_configurations (from the project root).
"""
import asyncio

from config import settings
from database import AsyncSessionLocal, init_db
from services.configuration_store import SqlConfigurationStore, seed_default_configurations
from utils.logging import configure_logging


async def seed() -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await seed_default_configurations(SqlConfigurationStore(session))
        await session.commit()
    for config in created:
        print(f"Created configuration: {config.id} ({config.instrument_type.value})")
    if not created:
        print("Configurations already present, nothing to seed.")


if __name__ == "__main__":
    configure_logging(settings.log_level, json_output=False)
    asyncio.run(seed())
