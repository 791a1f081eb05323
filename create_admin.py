import asyncio
import sys
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select
from easymove.core.enums import UserRole
from easymove.core.security import hash_password
from easymove.db.session import AsyncSessionLocal, engine
from easymove.models.base import Base
from easymove.models.user import User
from easymove.models import audit, booking, driver, pricing_history  # noqa: F401  registers tables


async def create_user(username: str, password: str, role: UserRole = UserRole.ADMIN) -> bool:
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with AsyncSessionLocal() as db:
            res = await db.execute(select(User).where(User.username == username))
            if res.scalars().first():
                print(f"Error: User '{username}' already exists")
                return False

            user = User(username=username, password_hash=hash_password(password), role=role)
            db.add(user)
            await db.commit()
            await db.refresh(user)

        print(f"User '{username}' created successfully")
        print(f"User ID: {user.id}")
        print(f"Role: {role}")
        return True

    except SQLAlchemyError as e:
        print(f"Error creating user: {str(e)}")
        return False
    finally:
        await engine.dispose()


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <username> <password> [admin|operator]")
        sys.exit(1)

    username = sys.argv[1]
    password = sys.argv[2]
    role = UserRole(sys.argv[3]) if len(sys.argv) > 3 else UserRole.ADMIN

    if not username or not password:
        print("Error: username and password cannot be empty")
        sys.exit(1)

    success = asyncio.run(create_user(username, password, role))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
