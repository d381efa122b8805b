from __future__ import annotations
"""Bill file storage: put bytes, get them back by id."""
from typing import Optional
from assetflow import get_db
from assetflow.models.bill_file import BillFile

PDF_CONTENT_TYPE = 'application/pdf'


def put_blob(filename: str, data: bytes, content_type: str = PDF_CONTENT_TYPE, uploaded_by: Optional[int] = None) -> int:
    session = get_db()
    blob = BillFile(filename=filename, content_type=content_type, size=len(data), data=data, uploaded_by=uploaded_by)
    session.add(blob)
    session.flush()  # assigns id inside the caller's transaction
    return blob.id


def get_blob(blob_id: Optional[int]) -> Optional[BillFile]:
    if blob_id is None:
        return None
    return get_db().get(BillFile, blob_id)


def delete_blob(blob_id: Optional[int]) -> None:
    blob = get_blob(blob_id)
    if blob is not None:
        get_db().delete(blob)


def looks_like_pdf(filename: str, content_type: Optional[str], head: bytes) -> bool:
    if not filename.lower().endswith('.pdf'):
        return False
    if content_type and content_type not in (PDF_CONTENT_TYPE, 'application/octet-stream'):
        return False
    return head.startswith(b'%PDF')
