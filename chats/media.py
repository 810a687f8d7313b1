"""
첨부 파일 검증. MIME 은 클라이언트가 보낸 값을 믿지 않고 파일 내용(매직 넘버)
으로 판별한다. 검증은 DB 를 건드리기 전에 끝난다.
"""
import logging
from dataclasses import dataclass

import filetype

from coinchat_backend.errors import ValidationFailed
from options.services import get_int_option

logger = logging.getLogger(__name__)

ALLOWED_MIME = {
    "image": {"image/jpeg", "image/png", "image/webp", "image/gif"},
    "audio": {"audio/mpeg", "audio/ogg", "audio/x-wav", "audio/wav", "audio/aac", "audio/mp4", "audio/x-m4a", "audio/amr"},
    "video": {"video/mp4", "video/webm", "video/quicktime", "video/x-matroska"},
    "file": {"application/pdf", "application/zip"},
}

SIZE_OPTION = {
    "image": "max_chat_image_mb",
    "audio": "max_chat_audio_mb",
    "video": "max_chat_video_mb",
    "file": "max_chat_file_mb",
}

# filetype 판별에 충분한 헤더 길이
SNIFF_BYTES = 8192


@dataclass
class ValidatedFile:
    upload: object
    kind: str
    mime: str
    extension: str
    size: int

    @property
    def name(self):
        return getattr(self.upload, "name", "") or ""


def sniff(upload):
    """업로드 파일 앞부분을 읽어 (mime, extension) 를 돌려준다. 판별 불가면 None."""
    head = upload.read(SNIFF_BYTES)
    upload.seek(0)
    if not head:
        return None
    kind = filetype.guess(head)
    if kind is None:
        return None
    return kind.mime, kind.extension


def kind_for_mime(mime):
    for kind, allowed in ALLOWED_MIME.items():
        if mime in allowed:
            return kind
    return None


def validate_files(uploads):
    uploads = list(uploads or [])
    max_files = get_int_option("max_chat_files_per_message", minimum=1)
    if len(uploads) > max_files:
        raise ValidationFailed(f"You can attach at most {max_files} file(s) per message.")

    validated = []
    for upload in uploads:
        name = getattr(upload, "name", "file")
        detected = sniff(upload)
        if detected is None:
            logger.warning(f"Rejected upload {name}: unknown content type")
            raise ValidationFailed(f"Unsupported file type: {name}")

        mime, extension = detected
        kind = kind_for_mime(mime)
        if kind is None:
            logger.warning(f"Rejected upload {name}: {mime} not allowed")
            raise ValidationFailed(f"Unsupported file type: {mime}")

        max_mb = get_int_option(SIZE_OPTION[kind], minimum=1)
        size = upload.size
        if size > max_mb * 1024 * 1024:
            raise ValidationFailed(f"{kind.capitalize()} files must be smaller than {max_mb} MB.")

        validated.append(ValidatedFile(upload=upload, kind=kind, mime=mime, extension=extension, size=size))
    return validated
