from __future__ import annotations

import logging

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.ids import is_valid_id
from app.models.parking import Parking
from app.models.user import User
from app.services.audit import audit
from app.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidArgumentError,
    InvalidOperationError,
    NotFoundError,
)
from app.services.storage import ImageUpload, LocalImageStore
from app.services.users import UserDirectory

log = logging.getLogger(__name__)


async def get_parking_or_404(db: AsyncSession, parking_id: str) -> Parking:
    parking = None
    if is_valid_id(parking_id, "prk"):
        stmt = select(Parking).where(Parking.id == parking_id)
        parking = (await db.execute(stmt)).scalar_one_or_none()
    if parking is None:
        raise NotFoundError("Parking not found", parking_id=parking_id)
    return parking


def _ensure_publisher(parking: Parking, caller_id: str, action: str) -> None:
    # Plain id equality; there is no role hierarchy.
    if str(parking.publisher_id) != str(caller_id):
        log.info("%s denied: %s is not the publisher of %s", action, caller_id, parking.id)
        raise ForbiddenError(
            f"You are not allowed to {action} this parking",
            parking_id=parking.id,
            caller_id=caller_id,
        )


async def create_parking(
    *,
    db: AsyncSession,
    users: UserDirectory,
    description: str,
    location: str,
    price: float,
    publisher_id: str,
    image: ImageUpload | None = None,
    store: LocalImageStore | None = None,
) -> Parking:
    """
    Publish a new parking spot for an existing user.

    The listing starts available and unreserved. The image, when given, is
    written only once the publisher is known to exist.
    """
    publisher = await users.get(publisher_id)
    if publisher is None:
        raise NotFoundError("User not found", publisher_id=publisher_id)

    image_url = None
    if image is not None and store is not None:
        image_url = store.save(original_name=image.filename, data=image.data)

    parking = Parking(
        description=description,
        location=location,
        price=price,
        image=image_url,
        publisher_id=publisher.id,
        available=True,
        reserved_by=None,
        created_by=publisher.id,
        updated_by=publisher.id,
    )
    db.add(parking)
    try:
        await db.flush()
    except SQLAlchemyError:
        if image_url:
            store.delete(image_url)
        raise

    await audit(
        db,
        actor_id=publisher.id,
        action="parking.created",
        target_type="parking",
        target_id=parking.id,
        detail={"image": image_url},
    )
    log.info("parking %s created by %s", parking.id, publisher.id)
    return parking


async def reserve_parking(
    *,
    db: AsyncSession,
    users: UserDirectory,
    parking_id: str,
    user_id: str,
) -> Parking:
    """
    Reserve an available parking for a user other than its publisher.

    Checks run in a fixed order so a given bad request always gets the same
    error: parking exists, parking available, not self-reservation, user
    exists. The flip itself is a conditional update on ``available`` so two
    concurrent reservations cannot both win.
    """
    parking = await get_parking_or_404(db, parking_id)

    if not parking.available:
        raise ConflictError("Parking is already reserved", parking_id=parking.id)

    if str(parking.publisher_id) == str(user_id):
        raise InvalidOperationError("You cannot reserve your own parking", parking_id=parking.id, user_id=user_id)

    user = await users.get(user_id)
    if user is None:
        raise NotFoundError("User not found", user_id=user_id)

    result = await db.execute(
        update(Parking)
        .where(Parking.id == parking.id, Parking.available.is_(True))
        .values(available=False, reserved_by=user.id, updated_by=user.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        log.info("reservation of %s by %s lost to a concurrent reservation", parking.id, user.id)
        raise ConflictError("Parking is already reserved", parking_id=parking.id)

    await db.refresh(parking)

    await audit(
        db,
        actor_id=user.id,
        action="parking.reserved",
        target_type="parking",
        target_id=parking.id,
    )
    log.info("parking %s reserved by %s", parking.id, user.id)
    return parking


async def list_parkings(*, db: AsyncSession) -> list[Parking]:
    rows = (await db.execute(select(Parking))).scalars().all()
    return list(rows)


async def list_user_parkings(
    *,
    db: AsyncSession,
    users: UserDirectory,
    user_id: str,
) -> tuple[User, list[Parking]]:
    # Reject malformed ids before any lookup.
    if not is_valid_id(user_id, "usr"):
        raise InvalidArgumentError("Invalid user id", user_id=user_id)

    user = await users.get(user_id)
    if user is None:
        raise NotFoundError("User not found", user_id=user_id)

    stmt = select(Parking).where(Parking.publisher_id == user.id)
    rows = (await db.execute(stmt)).scalars().all()
    return user, list(rows)


async def edit_parking(
    *,
    db: AsyncSession,
    parking_id: str,
    caller_id: str,
    description: str | None = None,
    location: str | None = None,
    price: float | None = None,
    image: ImageUpload | None = None,
    store: LocalImageStore | None = None,
) -> Parking:
    """
    Update a parking on behalf of its publisher.

    Fields are replaced only when the new value is truthy: an empty string or
    a price of 0 counts as "not supplied" and keeps the current value.
    """
    parking = await get_parking_or_404(db, parking_id)
    _ensure_publisher(parking, caller_id, "edit")

    changed = []
    if description:
        parking.description = description
        changed.append("description")
    if location:
        parking.location = location
        changed.append("location")
    if price:
        parking.price = price
        changed.append("price")

    new_image = None
    if image is not None and store is not None:
        new_image = store.save(original_name=image.filename, data=image.data)
        parking.image = new_image
        changed.append("image")

    parking.updated_by = caller_id
    try:
        await db.flush()
    except SQLAlchemyError:
        if new_image:
            store.delete(new_image)
        raise

    await audit(
        db,
        actor_id=caller_id,
        action="parking.updated",
        target_type="parking",
        target_id=parking.id,
        detail={"fields": changed},
    )
    log.info("parking %s updated by %s (%s)", parking.id, caller_id, ",".join(changed) or "no changes")
    return parking


async def delete_parking(*, db: AsyncSession, parking_id: str, caller_id: str) -> None:
    """
    Remove a parking permanently. Reserved parkings can be deleted too; the
    reserving user is not notified.
    """
    parking = await get_parking_or_404(db, parking_id)
    _ensure_publisher(parking, caller_id, "delete")

    reserved_by = parking.reserved_by
    await db.delete(parking)
    await db.flush()

    await audit(
        db,
        actor_id=caller_id,
        action="parking.deleted",
        target_type="parking",
        target_id=parking_id,
        detail={"reserved_by": reserved_by},
    )
    log.info("parking %s deleted by %s", parking_id, caller_id)
