from pydantic import BaseModel, ConfigDict, Field


class PublisherOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = Field(alias="nombre")
    email: str


class ParkingOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str = Field(alias="descripcion")
    location: str = Field(alias="ubicacion")
    price: float = Field(alias="precio")
    image: str | None = Field(default=None, alias="imagen")
    publisher_id: str = Field(alias="publicadorId")
    available: bool = Field(alias="disponible")
    reserved_by: str | None = Field(default=None, alias="reservadoPor")

    # only filled on listing endpoints
    publisher: PublisherOut | None = Field(default=None, alias="publicador")


class ReserveIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1)


class ParkingEnvelope(BaseModel):
    message: str
    parking: ParkingOut


class ParkingListOut(BaseModel):
    parkings: list[ParkingOut]


class UserParkingsOut(BaseModel):
    message: str
    user: PublisherOut
    parkings: list[ParkingOut]


class DeletedOut(BaseModel):
    message: str
    parking_id: str
