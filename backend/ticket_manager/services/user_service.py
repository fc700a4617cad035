"""
User provisioning: maps an authenticated identity onto a local users row.

FIRST-USER BOOTSTRAP
====================
The very first user ever provisioned becomes an admin. Checking "is the
table empty?" and then inserting is a race: two first logins could both see
an empty table and both become admin. Instead the role is decided inside
the INSERT itself:

  INSERT INTO users (auth_sub, email, name, role)
  SELECT :sub, :email, :name,
         CASE WHEN EXISTS (SELECT users.id FROM users) THEN 'member' ELSE 'admin' END
  WHERE true
  ON CONFLICT (auth_sub) DO NOTHING

On PostgreSQL the provisioning path additionally takes
LOCK TABLE users IN SHARE ROW EXCLUSIVE MODE so two concurrent inserts of
different subjects serialize on the EXISTS check. SQLite serializes writers
already.

Roles are only ever promoted (an identity carrying the admin role claim),
never demoted here.
"""

from typing import Optional

from sqlalchemy import String, case, literal, select, text, true, update
from sqlalchemy.ext.asyncio import AsyncSession

from ticket_manager.core.exceptions import NotFoundError
from ticket_manager.core.logging import get_logger
from ticket_manager.core.security import Identity
from ticket_manager.db.session import atomic, dialect_insert, dialect_name
from ticket_manager.models.user import User, UserRole

logger = get_logger(__name__)


async def _find_by_sub(db: AsyncSession, sub: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.auth_sub == sub).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _provision(db: AsyncSession, sub: str, email: str, name: str) -> None:
    if dialect_name(db) == "postgresql":
        await db.execute(text("LOCK TABLE users IN SHARE ROW EXCLUSIVE MODE"))

    role = case(
        (select(User.id).correlate(None).exists(), UserRole.MEMBER.value),
        else_=UserRole.ADMIN.value,
    )
    # WHERE true keeps SQLite from reading ON CONFLICT as a join constraint
    source = select(
        literal(sub, String),
        literal(email, String),
        literal(name, String),
        role,
    ).where(true())
    await db.execute(
        dialect_insert(db, User)
        .from_select(["auth_sub", "email", "name", "role"], source)
        .on_conflict_do_nothing(index_elements=["auth_sub"])
    )


async def resolve_user(db: AsyncSession, identity: Identity) -> User:
    """
    Return the users row for an authenticated identity, creating it on first
    sight. Email and display name are refreshed from the token claims; an
    admin role claim promotes the user.
    """
    email = identity.email or ""
    name = identity.name or identity.email or identity.sub

    async with atomic(db):
        user = await _find_by_sub(db, identity.sub)
        if user is None:
            await _provision(db, identity.sub, email, name)
            user = await _find_by_sub(db, identity.sub)
            logger.info("user_provisioned", user_id=user.id, role=user.role)

        changes = {}
        if user.email != email and identity.email:
            changes["email"] = email
        if user.name != name and identity.name:
            changes["name"] = name
        if identity.claims_admin and not user.is_admin:
            changes["role"] = UserRole.ADMIN.value
        if changes:
            await db.execute(
                update(User)
                .where(User.id == user.id)
                .values(**changes)
                .execution_options(synchronize_session=False)
            )
            if "role" in changes:
                logger.info("user_promoted", user_id=user.id)

    if changes:
        user = await _find_by_sub(db, identity.sub)
    return user


async def get_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(
        select(User).where(User.id == user_id).execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError(f"User {user_id} not found", entity="user", id=user_id)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(select(User).order_by(User.id))
    return list(result.scalars().all())
