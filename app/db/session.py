from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

engine = create_async_engine(settings.DB_URL.replace("psycopg2", "asyncpg"), pool_pre_ping=True)

# shared by the request-scoped `get_db` and the matching engine's own transactions
SessionLocal: async_sessionmaker[AsyncSession] = async_sessionmaker(engine, expire_on_commit=False)


async def get_db():
    async with SessionLocal() as session:
        yield session
