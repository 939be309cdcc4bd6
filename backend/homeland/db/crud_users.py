# homeland/db/crud_users.py

from datetime import datetime, timedelta
from typing import Optional, List, Dict

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.db.models import Booking, Property, User, UserRefreshToken
from homeland.core.security import get_password_hash, generate_reset_token


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email.lower()))
    return res.scalar_one_or_none()


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(select(User).order_by(User.id.desc()))
    return list(res.scalars().all())


async def list_users_by_role(db: AsyncSession, role: str) -> List[User]:
    res = await db.execute(
        select(User).where(User.role == role).order_by(User.created_at.desc(), User.id.desc())
    )
    return list(res.scalars().all())


async def count_users(db: AsyncSession, role: Optional[str] = None) -> int:
    stmt = select(func.count(User.id))
    if role:
        stmt = stmt.where(User.role == role)
    return int((await db.execute(stmt)).scalar_one())


async def host_counts(db: AsyncSession, host_ids: List[int]) -> Dict[int, Dict[str, int]]:
    """
    {host_id: {"properties", "bookings"}}, bookings counted across the host's properties.
    """
    counts = {hid: {"properties": 0, "bookings": 0} for hid in host_ids}
    if not host_ids:
        return counts
    prop_rows = await db.execute(
        select(Property.host_id, func.count(Property.id))
        .where(Property.host_id.in_(host_ids))
        .group_by(Property.host_id)
    )
    for host_id, n in prop_rows.all():
        counts[host_id]["properties"] = int(n)
    booking_rows = await db.execute(
        select(Property.host_id, func.count(Booking.id))
        .join(Booking, Booking.property_id == Property.id)
        .where(Property.host_id.in_(host_ids))
        .group_by(Property.host_id)
    )
    for host_id, n in booking_rows.all():
        counts[host_id]["bookings"] = int(n)
    return counts


async def create_user(
    db: AsyncSession,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: Optional[str] = None,
    role: str = "user",
) -> User:
    """
    Create a user with hashed password. Emails are stored lower-cased.
    """
    hashed = get_password_hash(password)
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email.lower(),
        phone=phone,
        hashed_password=hashed,
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_user_role(db: AsyncSession, user_id: int, role: str) -> User:
    res = await db.execute(select(User).where(User.id == user_id))
    user = res.scalar_one_or_none()
    if not user:
        raise ValueError("User not found")

    user.role = role
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def promote_to_host(db: AsyncSession, user: User) -> bool:
    """
    A plain user becomes a host when they list their first property.
    Returns True when the role actually changed.
    """
    if user.role != "user":
        return False
    user.role = "host"
    db.add(user)
    await db.commit()
    return True


async def set_password(db: AsyncSession, user: User, password: str) -> User:
    user.hashed_password = get_password_hash(password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def issue_reset_token(db: AsyncSession, user: User, expires_minutes: int) -> str:
    token = generate_reset_token()
    user.reset_token = token
    user.reset_token_expiry = datetime.utcnow() + timedelta(minutes=expires_minutes)
    db.add(user)
    await db.commit()
    return token


async def get_user_by_reset_token(db: AsyncSession, token: str) -> Optional[User]:
    """
    User holding this reset token, only while the token has not expired.
    """
    res = await db.execute(
        select(User).where(
            User.reset_token == token,
            User.reset_token_expiry > datetime.utcnow(),
        )
    )
    return res.scalar_one_or_none()


async def save_refresh_token(db: AsyncSession, user_id: int, token: str) -> None:
    """
    Store a new refresh token for the user.
    Simple strategy: revoke existing, then insert new.
    """
    await db.execute(
        update(UserRefreshToken)
        .where(UserRefreshToken.user_id == user_id, UserRefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )

    db.add(UserRefreshToken(user_id=user_id, token=token))
    await db.commit()


async def is_refresh_token_active(db: AsyncSession, token: str) -> bool:
    res = await db.execute(
        select(UserRefreshToken.id).where(
            UserRefreshToken.token == token,
            UserRefreshToken.revoked == False,  # noqa: E712
        )
    )
    return res.first() is not None


async def revoke_refresh_token(db: AsyncSession, token: str) -> None:
    """
    Mark a single refresh token as revoked.
    """
    await db.execute(
        update(UserRefreshToken)
        .where(UserRefreshToken.token == token, UserRefreshToken.revoked == False)  # noqa: E712
        .values(revoked=True)
    )
    await db.commit()
