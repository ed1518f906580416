"""Document storage providers for KYC uploads"""

import uuid
from pathlib import PurePosixPath
from typing import Optional, Protocol

from finflow.config import settings
from finflow.domain.exceptions import ValidationError

ALLOWED_EXTENSIONS = (".pdf", ".jpg", ".jpeg", ".png")


class DocumentStorageProvider(Protocol):
    """Resolves where an uploaded KYC file lives"""

    def register(self, owner_id: str, document_type: str, file_name: str, file_url: Optional[str]) -> str:
        ...


class MockDocumentStorage:
    """
    Placeholder storage: files are uploaded elsewhere and only referenced here.

    Accepts PDF, JPG and PNG names. The client-supplied URL is kept as is; when
    none is sent a placeholder URL under the configured base is issued.
    """

    def __init__(self, base_url: str | None = None):
        self.base_url = (base_url or settings.document_base_url).rstrip("/")

    def register(self, owner_id: str, document_type: str, file_name: str, file_url: Optional[str]) -> str:
        """
        Raises:
            ValidationError: file type is not accepted
        """
        if PurePosixPath(file_name).suffix.lower() not in ALLOWED_EXTENSIONS:
            raise ValidationError.for_field("fileName", "Please upload PDF, JPG, or PNG files only")

        if file_url:
            return file_url
        return f"{self.base_url}/{owner_id}/{document_type}/{uuid.uuid4().hex[:12]}-{file_name}"
