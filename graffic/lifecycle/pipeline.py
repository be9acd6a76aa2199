from __future__ import annotations

import inspect
from io import BytesIO
from typing import Any, Callable, Iterable

from PIL import Image, ImageOps, UnidentifiedImageError

from graffic.core.errors import ValidationError
from graffic.core.logging import get_logger

logger = get_logger(__name__)

# A processor receives the current image (and optionally the asset) and
# returns a new image.
Processor = Callable[..., Image.Image]

PIL_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
}

# Per-format encoder options (compression settings).
SAVE_OPTIONS: dict[str, dict[str, Any]] = {
    "JPEG": {"quality": 85, "optimize": True},
    "PNG": {"optimize": True},
    "GIF": {},
    "WEBP": {"quality": 85},
}


def _takes_asset(fn: Processor) -> bool:
    try:
        params = inspect.signature(fn).parameters.values()
    except (TypeError, ValueError):
        return False

    positional = [
        p for p in params
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if any(p.kind == p.VAR_POSITIONAL for p in params):
        return True
    return len(positional) >= 2


def run_pipeline(processors: Iterable[Processor], image: Image.Image, asset: Any = None) -> Image.Image:
    """
    Apply processors in registration order; each one's output feeds the next.
    Raises ValidationError as soon as a processor returns a non-image.
    """
    current = image
    for i, fn in enumerate(processors):
        name = getattr(fn, "__name__", repr(fn))
        logger.debug("pipeline step %d: %s", i, name)

        result = fn(current, asset) if _takes_asset(fn) else fn(current)
        if not isinstance(result, Image.Image):
            raise ValidationError(
                f"processor {name} must return a PIL image, got {type(result).__name__}"
            )
        current = result
    return current


def fit(width: int | None, height: int | None) -> Processor:
    """
    Implicit processor for sized versions. With both sides given the image is
    cropped and resized to exactly width x height; with one side it is scaled
    to that side keeping its aspect ratio.
    """
    def fit_image(image: Image.Image) -> Image.Image:
        if width and height:
            return ImageOps.fit(image, (width, height), Image.Resampling.LANCZOS)

        w, h = image.size
        if width:
            target = (width, max(1, round(h * width / w)))
        elif height:
            target = (max(1, round(w * height / h)), height)
        else:
            return image.copy()
        return image.resize(target, Image.Resampling.LANCZOS)

    fit_image.__name__ = f"fit_{width}x{height}"
    return fit_image


def decode(data: bytes) -> Image.Image:
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except UnidentifiedImageError as e:
        raise ValidationError(f"input is not a readable image: {e}") from e
    return img


def pil_format(fmt: str) -> str:
    f = (fmt or "").lower()
    return PIL_FORMATS.get(f, f.upper())


def encode(image: Image.Image, fmt: str) -> bytes:
    target = pil_format(fmt)
    img = image
    if target == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    buf = BytesIO()
    img.save(buf, format=target, **SAVE_OPTIONS.get(target, {}))
    return buf.getvalue()
