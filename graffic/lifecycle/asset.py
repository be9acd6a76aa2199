from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


class AssetState(str, enum.Enum):
    received = "received"
    moved = "moved"
    uploaded = "uploaded"
    processed = "processed"


# Extensions used in object keys; anything else is used verbatim.
FORMAT_EXTENSIONS = {
    "jpeg": "jpg",
    "jpg": "jpg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
}


@dataclass(frozen=True)
class OwnerRef:
    """
    Opaque (type, id) pair naming whatever record owns an asset.
    Resolving it to an actual object is the caller's business.
    """
    type: str
    id: str

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"


@dataclass
class Asset:
    kind: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    name: Optional[str] = None
    format: Optional[str] = None
    state: AssetState = AssetState.received
    width: Optional[int] = None
    height: Optional[int] = None
    owner: Optional[OwnerRef] = None
    parent_id: Optional[str] = None
    derivatives: dict[str, str] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    # Runtime only; never persisted.
    source: Any = field(default=None, repr=False, compare=False)
    image: Any = field(default=None, repr=False, compare=False)

    @property
    def size(self) -> str:
        return f"{self.width}x{self.height}"

    @property
    def is_derivative(self) -> bool:
        return self.parent_id is not None

    def __str__(self) -> str:
        return f"Asset({self.kind}:{self.id})"


def pluralize(word: str) -> str:
    """
    Table-style plural of an owner type: ``"UserProfile"`` -> ``"user_profiles"``.
    """
    snake = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", word.replace(".", "_")).lower()
    if re.search(r"[^aeiou]y$", snake):
        return snake[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", snake):
        return snake + "es"
    return snake + "s"


def format_extension(fmt: str) -> str:
    f = (fmt or "").lower()
    return FORMAT_EXTENSIONS.get(f, f)


def object_key(asset: Asset, fmt: str) -> str:
    """
    Canonical remote key for an asset.

    Primary assets live at ``<owner types>/<asset id>.<ext>``. Derivatives are
    keyed by their owner and slot name instead of their own id, so generating
    the same version twice writes the same object.
    """
    ext = format_extension(fmt)
    if asset.is_derivative and asset.owner is not None and asset.name:
        return f"{pluralize(asset.owner.type)}/{asset.owner.id}/{asset.name}.{ext}"

    owner_type = asset.owner.type if asset.owner is not None else asset.kind
    return f"{pluralize(owner_type)}/{asset.id}.{ext}"
