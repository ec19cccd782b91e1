from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VideoInfo:
    """Everything a poster is rendered from.

    Immutable: remixing or regenerating produces a new value, so a caller
    holding a VideoInfo never sees its colors change underneath it.
    """
    title: str
    thumbnail_url: str
    colors: Tuple[str, ...]
    source_url: str
    thumbnail_attempts: Tuple[str, ...] = field(default=(), compare=False)

    def with_colors(self, colors) -> "VideoInfo":
        return replace(self, colors=tuple(colors))

    def to_response(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "thumbnailUrl": self.thumbnail_url,
            "colors": list(self.colors),
            "sourceUrl": self.source_url,
            "thumbnailAttempts": list(self.thumbnail_attempts),
        }

    @classmethod
    def from_response(cls, data: Dict[str, Any], source_url: Optional[str] = None) -> "VideoInfo":
        return cls(
            title=data.get("title") or "",
            thumbnail_url=data.get("thumbnailUrl") or "",
            colors=tuple(data.get("colors") or ()),
            source_url=source_url or data.get("sourceUrl") or "",
            thumbnail_attempts=tuple(data.get("thumbnailAttempts") or ()),
        )


@dataclass
class User:
    user_id: str
    name: str
    email: str
    password_hash: str
    is_premium: bool = False
    posters: List[str] = field(default_factory=list)

    def projection(self) -> Dict[str, Any]:
        """Public view of the user; never includes the credential hash."""
        return {
            "userId": self.user_id,
            "name": self.name,
            "email": self.email,
            "isPremium": self.is_premium,
        }
