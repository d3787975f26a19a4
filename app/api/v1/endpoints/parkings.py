import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_db
from app.models.parking import Parking
from app.schemas.common import ErrorResponse
from app.schemas.parking import (
    DeletedOut,
    ParkingEnvelope,
    ParkingListOut,
    ParkingOut,
    PublisherOut,
    ReserveIn,
    UserParkingsOut,
)
from app.services import parkings as svc
from app.services.auth import Identity, get_identity
from app.services.errors import InternalError
from app.services.storage import ImageUpload, LocalImageStore, get_image_store
from app.services.users import UserDirectory, get_user_directory

log = logging.getLogger(__name__)
router = APIRouter(
    prefix="/parkings",
    responses={code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)},
)


def _parking_out(p: Parking, *, with_publisher: bool = False) -> ParkingOut:
    publisher = None
    if with_publisher and p.publisher is not None:
        publisher = PublisherOut(id=p.publisher.id, name=p.publisher.name, email=p.publisher.email)
    return ParkingOut(
        id=p.id,
        description=p.description,
        location=p.location,
        price=p.price,
        image=p.image,
        publisher_id=p.publisher_id,
        available=p.available,
        reserved_by=p.reserved_by,
        publisher=publisher,
    )


async def _read_upload(upload: UploadFile | None) -> ImageUpload | None:
    # Browsers send an empty part when no file was picked.
    if upload is None or not upload.filename:
        return None
    return ImageUpload(filename=upload.filename, data=await upload.read())


def _discard_upload(store: LocalImageStore, upload: ImageUpload | None, parking: Parking | None) -> None:
    # Read before rollback expires the row; only this request's file goes.
    if upload is not None and parking is not None and parking.image:
        store.delete(parking.image)


async def _internal(db: AsyncSession, message: str, e: Exception) -> InternalError:
    await db.rollback()
    log.exception(message)
    return InternalError(message, error=str(e))


@router.post("/create", response_model=ParkingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_parking(
    description: str = Form(..., alias="descripcion"),
    location: str = Form(..., alias="ubicacion"),
    price: float = Form(..., alias="precio"),
    publisher_id: str = Form(..., alias="publicadorId"),
    image: UploadFile | None = File(None, alias="imagen"),
    db: AsyncSession = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
    store: LocalImageStore = Depends(get_image_store),
) -> ParkingEnvelope:
    upload = await _read_upload(image)
    parking = None
    try:
        parking = await svc.create_parking(
            db=db,
            users=users,
            description=description,
            location=location,
            price=price,
            publisher_id=publisher_id,
            image=upload,
            store=store,
        )
        await db.commit()
    except (SQLAlchemyError, OSError) as e:
        _discard_upload(store, upload, parking)
        raise await _internal(db, "Error creating parking", e)

    return ParkingEnvelope(message="Parking created", parking=_parking_out(parking))


@router.post("/reserve/{parking_id}", response_model=ParkingEnvelope)
async def reserve_parking(
    parking_id: str,
    payload: ReserveIn,
    db: AsyncSession = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
) -> ParkingEnvelope:
    try:
        parking = await svc.reserve_parking(db=db, users=users, parking_id=parking_id, user_id=payload.user_id)
        await db.commit()
    except SQLAlchemyError as e:
        raise await _internal(db, "Error reserving parking", e)

    return ParkingEnvelope(message="Parking reserved", parking=_parking_out(parking))


@router.get("/list", response_model=ParkingListOut)
async def list_parkings(db: AsyncSession = Depends(get_db)) -> ParkingListOut:
    try:
        rows = await svc.list_parkings(db=db)
    except SQLAlchemyError as e:
        raise await _internal(db, "Error listing parkings", e)

    return ParkingListOut(parkings=[_parking_out(p, with_publisher=True) for p in rows])


@router.put("/edit/{parking_id}", response_model=ParkingEnvelope)
async def edit_parking(
    parking_id: str,
    description: str | None = Form(None, alias="descripcion"),
    location: str | None = Form(None, alias="ubicacion"),
    price: float | None = Form(None, alias="precio"),
    image: UploadFile | None = File(None, alias="imagen"),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    store: LocalImageStore = Depends(get_image_store),
) -> ParkingEnvelope:
    upload = await _read_upload(image)
    parking = None
    try:
        parking = await svc.edit_parking(
            db=db,
            parking_id=parking_id,
            caller_id=identity.uid,
            description=description,
            location=location,
            price=price,
            image=upload,
            store=store,
        )
        await db.commit()
    except (SQLAlchemyError, OSError) as e:
        _discard_upload(store, upload, parking)
        raise await _internal(db, "Error updating parking", e)

    return ParkingEnvelope(message="Parking updated", parking=_parking_out(parking))


@router.get("/user/{user_id}/parkings", response_model=UserParkingsOut)
async def list_user_parkings(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    users: UserDirectory = Depends(get_user_directory),
) -> UserParkingsOut:
    try:
        user, rows = await svc.list_user_parkings(db=db, users=users, user_id=user_id)
    except SQLAlchemyError as e:
        raise await _internal(db, "Error listing user parkings", e)

    return UserParkingsOut(
        message="User parkings",
        user=PublisherOut(id=user.id, name=user.name, email=user.email),
        parkings=[_parking_out(p, with_publisher=True) for p in rows],
    )


@router.delete("/delete/{parking_id}", response_model=DeletedOut)
async def delete_parking(
    parking_id: str,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
) -> DeletedOut:
    try:
        await svc.delete_parking(db=db, parking_id=parking_id, caller_id=identity.uid)
        await db.commit()
    except SQLAlchemyError as e:
        raise await _internal(db, "Error deleting parking", e)

    return DeletedOut(message="Parking deleted", parking_id=parking_id)
