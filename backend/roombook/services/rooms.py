from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Iterable
from pathlib import Path
from typing import List, Optional

from fastapi import UploadFile
from sqlmodel import Session, select

from roombook.core.config import Settings
from roombook.core.errors import NotFound, ValidationFailed
from roombook.models import Room

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ROOM_IMAGE_URL_PREFIX = "/uploads/rooms/"


class RoomImageStore:
    """Room pictures on local disk, referenced from the database by URL path."""

    def __init__(self, upload_dir: Path | str, max_size: int) -> None:
        self.root = Path(upload_dir)
        self.directory = self.root / "rooms"
        self.max_size = max_size

    async def save(self, upload: UploadFile, field_name: str = "image") -> str:
        """Write the upload to disk and return its URL path."""
        content = await upload.read()
        if len(content) > self.max_size:
            raise ValidationFailed(
                f"File size exceeds maximum allowed size of {self.max_size / 1024 / 1024}MB"
            )
        extension = Path(upload.filename or "").suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationFailed(
                f"File type not allowed. Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
            )
        self.directory.mkdir(parents=True, exist_ok=True)
        filename = f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{extension}"
        (self.directory / filename).write_bytes(content)
        return f"{ROOM_IMAGE_URL_PREFIX}{filename}"

    def path_for(self, image: str) -> Optional[Path]:
        # Only files this store wrote are ever deleted
        if not image or not image.startswith(ROOM_IMAGE_URL_PREFIX):
            return None
        return self.directory / Path(image).name

    def delete(self, image: Optional[str]) -> None:
        """Remove a stored image; failures are logged, never raised."""
        path = self.path_for(image) if image else None
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Room image already gone: {path}")
        except OSError as e:
            logger.error(f"Error deleting room image file {path}: {e}")


def parse_features(value: Optional[str | Iterable[str]]) -> Optional[str]:
    """Normalise feature tags into the comma-separated form stored in the table."""
    if value is None:
        return None
    items = value.split(",") if isinstance(value, str) else value
    tags = [tag.strip() for tag in items if tag and tag.strip()]
    return ", ".join(tags) if tags else None


def parse_capacity(value: Optional[str | int]) -> int:
    try:
        capacity = int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        capacity = None
    if capacity is None or capacity < 1:
        raise ValidationFailed("Capacity must be a positive integer.")
    return capacity


class RoomService:
    def __init__(self, session: Session, settings: Settings, images: RoomImageStore) -> None:
        self.session = session
        self.settings = settings
        self.images = images

    def list(self) -> List[Room]:
        return list(self.session.exec(select(Room).order_by(Room.name)).all())

    def get(self, room_id: int) -> Room:
        room = self.session.get(Room, room_id)
        if not room:
            raise NotFound("Room not found.")
        return room

    def create(
        self,
        name: Optional[str],
        capacity: Optional[str | int],
        features: Optional[str | Iterable[str]] = None,
        image: Optional[str] = None,
    ) -> Room:
        """Insert a room. ``image`` is an already stored upload, removed again on failure."""
        try:
            name, parsed_capacity = self._validate(name, capacity, "Room name and capacity are required.")
            room = Room(name=name, capacity=parsed_capacity, features=parse_features(features), image=image)
            self.session.add(room)
            self.session.commit()
        except Exception:
            self.session.rollback()
            self.images.delete(image)
            raise
        self.session.refresh(room)
        logger.info(f"Room {room.id} ({room.name}) created")
        return room

    def update(
        self,
        room_id: int,
        name: Optional[str],
        capacity: Optional[str | int],
        features: Optional[str | Iterable[str]] = None,
        image: Optional[str] = None,
    ) -> Room:
        """Replace a room's fields; the previous image is removed only after commit."""
        try:
            name, parsed_capacity = self._validate(
                name, capacity, "Room name and capacity are required for update."
            )
            room = self.session.exec(
                select(Room).where(Room.id == room_id).with_for_update()
            ).one_or_none()
            if not room:
                raise NotFound("Room not found for update.")
            old_image = room.image
            room.name = name
            room.capacity = parsed_capacity
            room.features = parse_features(features)
            if image:
                room.image = image
            room.touch()
            self.session.add(room)
            self.session.commit()
        except Exception:
            self.session.rollback()
            self.images.delete(image)
            raise

        if image and old_image and old_image != image:
            self.images.delete(old_image)
        self.session.refresh(room)
        logger.info(f"Room {room_id} updated")
        return room

    def delete(self, room_id: int) -> None:
        try:
            room = self.session.get(Room, room_id)
            if not room:
                raise NotFound("Room not found.")
            image = room.image
            self.session.delete(room)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        # The row is gone already; a leftover file is only logged
        self.images.delete(image)
        logger.info(f"Room {room_id} deleted")

    def _validate(
        self, name: Optional[str], capacity: Optional[str | int], missing_message: str
    ) -> tuple[str, int]:
        name = (name or "").strip()
        if not name or capacity in (None, ""):
            raise ValidationFailed(missing_message)
        if len(name) > 255:
            raise ValidationFailed("Room name must be at most 255 characters.")
        return name, parse_capacity(capacity)
