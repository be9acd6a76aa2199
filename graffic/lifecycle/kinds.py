from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional

from graffic.core.config import settings
from graffic.core.errors import NotFoundError
from graffic.lifecycle.pipeline import Processor, fit

ORIGINAL = "original"


@dataclass(frozen=True)
class VersionSpec:
    name: str
    width: Optional[int] = None
    height: Optional[int] = None
    format: Optional[str] = None
    processors: tuple[Processor, ...] = ()

    @property
    def sized(self) -> bool:
        return self.width is not None or self.height is not None


@dataclass(frozen=True)
class AssetKindConfig:
    name: str
    bucket: str = settings.DEFAULT_BUCKET
    process_queue: str = settings.PROCESS_QUEUE
    upload_queue: str = settings.UPLOAD_QUEUE
    default_format: str = settings.DEFAULT_FORMAT
    staging_dir: str = settings.STAGING_DIR
    acl: str = settings.DEFAULT_ACL
    processors: tuple[Processor, ...] = ()
    versions: tuple[VersionSpec, ...] = ()
    use_queue: bool = settings.USE_QUEUE
    generate_versions: bool = True
    keep_original: bool = True
    # Uploaded bytes are already final; `upload` goes straight to processed.
    finished: bool = False

    def override(self, **changes: Any) -> "AssetKindConfig":
        return replace(self, **changes)

    def version(self, name: str) -> VersionSpec:
        for v in self.versions:
            if v.name == name:
                return v
        raise NotFoundError("version", f"{self.name}.{name}")

    def version_kind(self, spec: VersionSpec) -> "AssetKindConfig":
        """Config for the child assets generated for one version."""
        processors: tuple[Processor, ...] = ()
        if spec.sized:
            processors += (fit(spec.width, spec.height),)
        processors += tuple(spec.processors)

        return replace(
            self,
            name=f"{self.name}.{spec.name}",
            default_format=spec.format or self.default_format,
            processors=processors,
            versions=(),
            generate_versions=False,
            keep_original=False,
            finished=False,
        )

    def original_kind(self) -> "AssetKindConfig":
        return replace(
            self,
            name=f"{self.name}.{ORIGINAL}",
            processors=(),
            versions=(),
            generate_versions=False,
            keep_original=False,
            finished=True,
        )


class KindBuilder:
    """
    Registration API for an asset kind, used once at startup:

        photos = (
            KindBuilder("photo")
            .bucket("photos.example.com")
            .process(strip_exif)
            .version("thumb", width=100, height=100)
            .build()
        )
    """

    def __init__(self, name: str, base: AssetKindConfig | None = None):
        self._fields: dict[str, Any] = {}
        self._processors: list[Processor] = list(base.processors) if base else []
        self._versions: dict[str, VersionSpec] = {v.name: v for v in base.versions} if base else {}
        self._base = base
        self._name = name

    def bucket(self, name: str) -> "KindBuilder":
        self._fields["bucket"] = name
        return self

    def queues(self, process: str | None = None, upload: str | None = None) -> "KindBuilder":
        if process:
            self._fields["process_queue"] = process
        if upload:
            self._fields["upload_queue"] = upload
        return self

    def format(self, fmt: str) -> "KindBuilder":
        self._fields["default_format"] = fmt.lower()
        return self

    def staging_dir(self, path: str) -> "KindBuilder":
        self._fields["staging_dir"] = path
        return self

    def acl(self, acl: str) -> "KindBuilder":
        self._fields["acl"] = acl
        return self

    def process(self, *fns: Processor) -> "KindBuilder":
        self._processors.extend(fns)
        return self

    def version(
        self,
        name: str,
        *,
        width: int | None = None,
        height: int | None = None,
        format: str | None = None,
        processors: Iterable[Processor] = (),
    ) -> "KindBuilder":
        if name == ORIGINAL:
            raise ValueError(f"'{ORIGINAL}' is reserved for the untouched upload")
        self._versions[name] = VersionSpec(
            name=name,
            width=width,
            height=height,
            format=format.lower() if format else None,
            processors=tuple(processors),
        )
        return self

    def use_queue(self, enabled: bool = True) -> "KindBuilder":
        self._fields["use_queue"] = enabled
        return self

    def generate_versions(self, enabled: bool = True) -> "KindBuilder":
        self._fields["generate_versions"] = enabled
        return self

    def keep_original(self, enabled: bool = True) -> "KindBuilder":
        self._fields["keep_original"] = enabled
        return self

    def build(self) -> AssetKindConfig:
        base = self._base or AssetKindConfig(name=self._name)
        return replace(
            base,
            name=self._name,
            processors=tuple(self._processors),
            versions=tuple(self._versions.values()),
            **self._fields,
        )


class KindRegistry:
    """
    Name -> AssetKindConfig lookup. Registering a kind also registers the
    derived kinds its children run under (`<kind>.original`, `<kind>.<version>`).
    """

    def __init__(self, kinds: Iterable[AssetKindConfig] = ()):
        self._kinds: dict[str, AssetKindConfig] = {}
        for k in kinds:
            self.register(k)

    def register(self, config: AssetKindConfig) -> AssetKindConfig:
        self._kinds[config.name] = config
        if config.keep_original:
            orig = config.original_kind()
            self._kinds[orig.name] = orig
        for spec in config.versions:
            child = config.version_kind(spec)
            self._kinds[child.name] = child
        return config

    def get(self, name: str) -> AssetKindConfig:
        config = self._kinds.get(name)
        if config is None:
            raise NotFoundError("asset kind", name)
        return config

    def queue_names(self) -> tuple[set[str], set[str]]:
        """(process queues, upload queues) across every registered kind."""
        process = {k.process_queue for k in self._kinds.values()}
        upload = {k.upload_queue for k in self._kinds.values()}
        return process, upload
