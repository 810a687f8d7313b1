import logging
import uuid
from dataclasses import dataclass

from django.core.files.storage import default_storage

logger = logging.getLogger(__name__)


@dataclass
class StoredFile:
    path: str
    id: str


class FileStorage:
    def store(self, upload, folder, extension) -> StoredFile:
        raise NotImplementedError

    def delete(self, path) -> None:
        raise NotImplementedError

    def url(self, path) -> str:
        raise NotImplementedError


class DefaultFileStorage(FileStorage):
    """Django default_storage (로컬 MEDIA_ROOT 또는 설정된 원격 스토리지) 위임."""

    def store(self, upload, folder, extension):
        name = f"{folder}/{uuid.uuid4().hex}.{extension}"
        path = default_storage.save(name, upload)
        return StoredFile(path=path, id=path)

    def delete(self, path):
        default_storage.delete(path)

    def url(self, path):
        return default_storage.url(path)
