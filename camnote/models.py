"""
Database Models

Key Models:
- Document: metadata for a scanned document (title, filter, page count, image location)
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from camnote import db
from camnote.services.imaging import FILTERS as FILTER_NAMES

DEFAULT_FILTER = "clean"

# Fields a client may change after creation
UPDATABLE_FIELDS = {
    'title': 'title',
    'filter': 'filter',
    'pageCount': 'page_count',
}


def _now():
    return datetime.now(timezone.utc)


class Document(db.Model):
    __tablename__ = 'documents'

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = db.Column(db.String(255), nullable=False)
    filter = db.Column(db.String(20), nullable=False, default=DEFAULT_FILTER)
    page_count = db.Column(db.Integer, nullable=False, default=1)
    image_uri = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_now, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_now, onupdate=_now)

    def to_dict(self):
        """Convert document to dictionary for API responses"""
        return {
            'id': self.id,
            'title': self.title,
            'filter': self.filter,
            'pageCount': self.page_count,
            'imageUri': self.image_uri,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def update_from_dict(self, data):
        """Apply already-validated client fields"""
        for key, attr in UPDATABLE_FIELDS.items():
            if key in data:
                setattr(self, attr, data[key])
        self.updated_at = _now()


def _check_field(key: str, value: Any) -> str:
    if key == 'title':
        if not isinstance(value, str) or not value.strip() or len(value) > 255:
            return "title must be a non-empty string"
    elif key == 'filter':
        if not isinstance(value, str) or value not in FILTER_NAMES:
            return f"filter must be one of {', '.join(FILTER_NAMES)}"
    elif key == 'pageCount':
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            return "pageCount must be a positive integer"
    elif key == 'imageUri':
        if value is not None and not isinstance(value, str):
            return "imageUri must be a string"
    return ""


def parse_document_payload(payload: Any, partial: bool = False) -> Tuple[Optional[Dict[str, Any]], str]:
    """Validate a create (or partial update) body.

    Returns (fields, "") on success or (None, error) on failure. Unknown keys
    are ignored. Updates only accept UPDATABLE_FIELDS.
    """
    if not isinstance(payload, dict):
        return None, "Expected a JSON object"

    allowed = list(UPDATABLE_FIELDS) if partial else ['title', 'filter', 'pageCount', 'imageUri']
    fields: Dict[str, Any] = {}
    for key in allowed:
        if key not in payload:
            continue
        err = _check_field(key, payload[key])
        if err:
            return None, err
        fields[key] = payload[key].strip() if key == 'title' else payload[key]

    if partial:
        if not fields:
            return None, "No valid fields to update"
        return fields, ""

    if 'title' not in fields:
        return None, "title is required"
    fields.setdefault('filter', DEFAULT_FILTER)
    fields.setdefault('pageCount', 1)
    fields.setdefault('imageUri', None)
    return fields, ""


def new_document(fields: Dict[str, Any]) -> Document:
    return Document(
        title=fields['title'],
        filter=fields['filter'],
        page_count=fields['pageCount'],
        image_uri=fields['imageUri'],
    )
