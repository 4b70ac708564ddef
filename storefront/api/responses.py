# storefront/api/responses.py
from typing import Any


def ok(data: Any = None, message: str | None = None) -> dict:
    """
    Koperta sukcesu. data moze zawierac obiekty ORM,
    response_model waliduje je z from_attributes.
    """
    body = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    return body
