"""Room registry endpoints. Mutations take multipart form data and need an admin token."""
from typing import List, Optional

from fastapi import APIRouter, File, Form, Request, UploadFile, status

from roombook.api.deps import AdminDep, RoomImagesDep, RoomServiceDep
from roombook.models import Room
from roombook.schemas import MessageResponse, RoomMutationResponse, RoomRead

router = APIRouter()


def room_read(room: Room, request: Request) -> RoomRead:
    data = RoomRead.model_validate(room)
    if room.image:
        base = str(request.base_url).rstrip("/")
        data = data.model_copy(update={"image": f"{base}{room.image}"})
    return data


async def _store_upload(images: RoomImagesDep, image: Optional[UploadFile]) -> Optional[str]:
    if image is None or not image.filename:
        return None
    return await images.save(image)


@router.get("/", response_model=List[RoomRead], summary="List rooms")
def list_rooms(request: Request, service: RoomServiceDep) -> List[RoomRead]:
    return [room_read(room, request) for room in service.list()]


@router.get("/{room_id}", response_model=RoomRead, summary="Get room by id")
def get_room(room_id: int, request: Request, service: RoomServiceDep) -> RoomRead:
    return room_read(service.get(room_id), request)


@router.post(
    "/",
    response_model=RoomMutationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create room",
)
async def create_room(
    request: Request,
    service: RoomServiceDep,
    images: RoomImagesDep,
    admin: AdminDep,
    name: Optional[str] = Form(default=None),
    capacity: Optional[str] = Form(default=None),
    features: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
) -> RoomMutationResponse:
    image_path = await _store_upload(images, image)
    room = service.create(name, capacity, features, image_path)
    return RoomMutationResponse(message="Room created successfully.", room=room_read(room, request))


@router.put("/{room_id}", response_model=RoomMutationResponse, summary="Update room")
async def update_room(
    room_id: int,
    request: Request,
    service: RoomServiceDep,
    images: RoomImagesDep,
    admin: AdminDep,
    name: Optional[str] = Form(default=None),
    capacity: Optional[str] = Form(default=None),
    features: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
) -> RoomMutationResponse:
    image_path = await _store_upload(images, image)
    room = service.update(room_id, name, capacity, features, image_path)
    return RoomMutationResponse(message="Room updated successfully.", room=room_read(room, request))


@router.delete("/{room_id}", response_model=MessageResponse, summary="Delete room")
def delete_room(room_id: int, service: RoomServiceDep, admin: AdminDep) -> MessageResponse:
    service.delete(room_id)
    return MessageResponse(message="Room deleted successfully.")
