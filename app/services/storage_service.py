# app/services/storage_service.py
import uuid
import logging
from dataclasses import dataclass
from flask import Flask
from firebase_admin import storage
from google.api_core import exceptions as google_exceptions
from google.cloud.storage.retry import DEFAULT_RETRY

from app.core.exceptions import ExternalServiceError

ALLOWED_EXTENSIONS = {'jpeg', 'jpg', 'png', 'gif', 'heic', 'heif', 'webp', 'mp4', 'mov', 'avi'}
VIDEO_EXTENSIONS = {'mp4', 'mov', 'avi'}

@dataclass
class FileUpload:
    """요청으로 들어온 파일 한 개. 라우트에서 werkzeug FileStorage를 변환해 서비스로 넘깁니다."""
    data: bytes
    content_type: str
    filename: str = ""

    @classmethod
    def from_file_storage(cls, file_storage) -> "FileUpload":
        return cls(
            data=file_storage.read(),
            content_type=file_storage.mimetype or 'application/octet-stream',
            filename=file_storage.filename or "",
        )

    @property
    def extension(self) -> str:
        return self.filename.rsplit('.', 1)[-1].lower() if '.' in self.filename else ''

    @property
    def is_video(self) -> bool:
        return (self.content_type or '').lower().startswith('video/') or self.extension in VIDEO_EXTENSIONS

    @property
    def is_allowed(self) -> bool:
        """이미지/동영상만 허용합니다. 모바일(HEIC 등)을 고려해 MIME 또는 확장자 중 하나만 맞아도 통과."""
        mimetype = (self.content_type or '').lower()
        return mimetype.startswith(('image/', 'video/')) or self.extension in ALLOWED_EXTENSIONS

@dataclass
class StoredObject:
    """업로드 결과. url은 클라이언트에 노출되는 공개 URL, ref는 삭제 시 사용하는 버킷 내 경로."""
    url: str
    ref: str

class StorageService:
    """
    Firebase Storage 관련 로직을 담당하는 범용 서비스 클래스입니다.
    서버로 들어온 파일 바이트를 버킷에 올리고 공개 URL을 돌려주거나, 저장된 객체를 삭제합니다.
    모든 호출은 STORAGE_TIMEOUT_SECONDS로 제한되며 실패는 ExternalServiceError로 변환됩니다.
    """

    def __init__(self):
        """
        클래스 인스턴스 생성 시 버킷을 None으로 초기화합니다.
        실제 버킷 객체는 init_app 메서드를 통해 주입됩니다.
        """
        self.bucket = None
        self.timeout = 30.0

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            raise ValueError("FIREBASE_STORAGE_BUCKET 설정이 .env 또는 설정 파일에 필요합니다.")

        self.bucket = storage.bucket(bucket_name)
        self.timeout = app.config.get('STORAGE_TIMEOUT_SECONDS', self.timeout)
        logging.info("StorageService: Firebase Storage 서비스가 성공적으로 초기화되었습니다.")

    def upload(self, data: bytes, folder: str, content_type: str, filename: str = "") -> StoredObject:
        """
        바이트를 folder 아래 고유한 이름으로 업로드하고 공개 URL을 반환합니다.

        :param data: 업로드할 파일 내용
        :param folder: 버킷 내 폴더 경로 (예: "posts/<user_id>")
        :param content_type: MIME 타입 (예: "image/jpeg")
        :param filename: 원본 파일명 (확장자 파악에 사용)
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        unique_filename = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        destination_blob_name = f"{folder}/{unique_filename}"
        blob = self.bucket.blob(destination_blob_name)

        try:
            # if_generation_match=0: 새 객체 생성만 허용하므로 재시도해도 중복 쓰기가 생기지 않습니다.
            blob.upload_from_string(
                data,
                content_type=content_type,
                timeout=self.timeout,
                retry=DEFAULT_RETRY,
                if_generation_match=0,
            )
            blob.make_public(timeout=self.timeout, retry=DEFAULT_RETRY)
        except Exception as e:
            logging.error(f"Storage 업로드 실패 (path: {destination_blob_name}): {e}", exc_info=True)
            # 쓰기는 끝났는데 공개 설정에서 실패했을 수 있으므로 남은 객체를 지웁니다.
            self._discard(blob, destination_blob_name)
            raise ExternalServiceError("Media upload failed", error_code="MEDIA_UPLOAD_FAILED") from e

        return StoredObject(url=blob.public_url, ref=destination_blob_name)

    def _discard(self, blob, path: str) -> None:
        try:
            blob.delete(timeout=self.timeout)
        except google_exceptions.NotFound:
            pass
        except Exception as e:
            logging.warning(f"업로드 실패 후 객체 정리에 실패했습니다 (path: {path}): {e}")

    def delete(self, ref: str) -> None:
        """저장된 객체를 삭제합니다. 이미 없는 객체는 성공으로 간주합니다."""
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        try:
            self.bucket.blob(ref).delete(timeout=self.timeout, retry=DEFAULT_RETRY)
        except google_exceptions.NotFound:
            logging.warning(f"Storage에 이미 없는 객체입니다 (path: {ref}).")
        except Exception as e:
            logging.error(f"Storage 삭제 실패 (path: {ref}): {e}", exc_info=True)
            raise ExternalServiceError("Media delete failed", error_code="MEDIA_DELETE_FAILED") from e
