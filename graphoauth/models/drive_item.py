"""Drive item model for Graph OAuth (graphoauth)."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any


def _parse_datetime(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, TypeError, AttributeError):
        return None


@dataclass
class DriveItem:
    """The file Graph reports once an upload completes."""

    name: str
    size: int
    id: Optional[str] = None
    parent_path: Optional[str] = None
    created_datetime: Optional[datetime] = None
    modified_datetime: Optional[datetime] = None
    mime_type: Optional[str] = None
    web_url: Optional[str] = None
    etag: Optional[str] = None

    @classmethod
    def from_api_response(cls, item: Dict[str, Any]) -> "DriveItem":
        """Create a DriveItem from a Graph driveItem resource."""
        return cls(
            name=item.get("name", ""),
            size=item.get("size", 0),
            id=item.get("id"),
            parent_path=item.get("parentReference", {}).get("path"),
            created_datetime=_parse_datetime(item.get("createdDateTime")),
            modified_datetime=_parse_datetime(item.get("lastModifiedDateTime")),
            mime_type=item.get("file", {}).get("mimeType") if "file" in item else None,
            web_url=item.get("webUrl"),
            etag=item.get("eTag"),
        )
