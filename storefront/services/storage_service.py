# storefront/services/storage_service.py
import re
import time
from pathlib import Path

from fastapi import UploadFile

from storefront.domain.errors import ValidationError
from storefront.utils.settings import MAX_UPLOAD_BYTES, UPLOAD_PATH
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

IMAGE_REF_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif)$", re.IGNORECASE)


def is_valid_image_ref(ref: str) -> bool:
    return bool(IMAGE_REF_PATTERN.search(ref))


class LocalImageStorage:
    """
    Zdjecia produktow na lokalnym dysku.
    Do bazy trafia tylko referencja (nazwa pliku), nigdy bajty.
    """

    def __init__(self, upload_path: str | Path | None = None, max_bytes: int | None = None):
        self.root = Path(upload_path or UPLOAD_PATH)
        self.max_bytes = max_bytes or MAX_UPLOAD_BYTES

    def ensure_dir(self) -> None:
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info(f"Upload directory {self.root} created")

    @staticmethod
    def _safe_name(filename: str) -> str:
        name = Path(filename).name
        return re.sub(r"[^A-Za-z0-9._-]", "_", name)

    def store_file(self, upload: UploadFile) -> str:
        filename = upload.filename or ""
        if not is_valid_image_ref(filename):
            raise ValidationError("Zdjecie musi byc plikiem jpg, jpeg, png lub gif")

        content = upload.file.read(self.max_bytes + 1)
        if len(content) > self.max_bytes:
            raise ValidationError(f"Zdjecie przekracza limit {self.max_bytes} bajtow")

        self.ensure_dir()
        #timestamp-nazwaoryginalna.ext
        ref = f"{int(time.time() * 1000)}-{self._safe_name(filename)}"
        (self.root / ref).write_bytes(content)

        logger.info(f"Image stored: {ref}")
        return ref

    def delete_file(self, ref: str | None) -> bool:
        if not ref:
            return False

        path = self.root / Path(ref).name
        if not path.exists():
            logger.warning(f"Image {ref} not found in {self.root}")
            return False

        path.unlink()
        logger.info(f"Image deleted: {ref}")
        return True
