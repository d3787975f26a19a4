import argparse
import asyncio
import json

from pydantic import BaseModel, EmailStr, TypeAdapter
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from app.core.config import settings
from app.core.ids import gen_id
from app.models.user import User


class UserSeed(BaseModel):
    id: str | None = None
    name: str
    email: EmailStr


async def seed(users: list[UserSeed]) -> None:
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as db:
        for u in users:
            user_id = u.id or gen_id("usr")
            existing = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
            if existing:
                print(f"{user_id} already exists")
                continue
            db.add(User(id=user_id, name=u.name, email=str(u.email)))
            print(f"Inserted {user_id} <{u.email}>")
        await db.commit()

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the local user directory replica from a JSON file.")
    parser.add_argument("path", help='JSON list of {"id"?, "name", "email"}')
    args = parser.parse_args()

    with open(args.path, encoding="utf-8") as f:
        users = TypeAdapter(list[UserSeed]).validate_python(json.load(f))
    asyncio.run(seed(users))


if __name__ == "__main__":
    main()
