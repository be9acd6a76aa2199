import pytest

from graffic.core.errors import NotFoundError
from graffic.lifecycle.asset import Asset, OwnerRef, object_key, pluralize
from graffic.lifecycle.kinds import AssetKindConfig, KindBuilder, KindRegistry


def strip(image):
    return image


def test_builder_collects_configuration():
    config = (
        KindBuilder("avatar")
        .bucket("avatars.example.com")
        .queues(process="avatar-jobs", upload="avatar-uploads")
        .format("JPG")
        .staging_dir("/tmp/avatars")
        .process(strip)
        .version("thumb", width=50, height=50)
        .use_queue(False)
        .build()
    )

    assert config.bucket == "avatars.example.com"
    assert (config.process_queue, config.upload_queue) == ("avatar-jobs", "avatar-uploads")
    assert config.default_format == "jpg"
    assert config.processors == (strip,)
    assert config.version("thumb").width == 50
    assert config.use_queue is False


def test_config_is_immutable_and_overridable():
    base = KindBuilder("photo").bucket("a").build()
    other = base.override(bucket="b")

    assert base.bucket == "a"
    assert other.bucket == "b"
    with pytest.raises(Exception):
        base.bucket = "c"


def test_builder_extends_a_base_kind():
    base = KindBuilder("photo").process(strip).version("thumb", width=10, height=10).build()

    banner = KindBuilder("banner", base=base).version("wide", width=300).build()

    assert banner.name == "banner"
    assert banner.processors == (strip,)
    assert [v.name for v in banner.versions] == ["thumb", "wide"]
    assert [v.name for v in base.versions] == ["thumb"]


def test_original_is_a_reserved_version_name():
    with pytest.raises(ValueError):
        KindBuilder("photo").version("original", width=1)


def test_registry_registers_child_kinds():
    registry = KindRegistry([KindBuilder("photo").version("thumb", width=10, height=10).build()])

    thumb = registry.get("photo.thumb")
    assert thumb.generate_versions is False
    assert thumb.keep_original is False
    assert len(thumb.processors) == 1

    original = registry.get("photo.original")
    assert original.finished is True
    assert original.processors == ()


def test_registry_unknown_kind():
    with pytest.raises(NotFoundError):
        KindRegistry().get("nope")


def test_queue_names_cover_all_kinds():
    registry = KindRegistry([
        AssetKindConfig(name="a", process_queue="p1", upload_queue="u1"),
        AssetKindConfig(name="b", process_queue="p2", upload_queue="u1"),
    ])

    process, upload = registry.queue_names()
    assert process == {"p1", "p2"}
    assert upload == {"u1"}


@pytest.mark.parametrize(
    "word, plural",
    [
        ("photo", "photos"),
        ("Image", "images"),
        ("UserProfile", "user_profiles"),
        ("category", "categories"),
        ("box", "boxes"),
    ],
)
def test_pluralize(word, plural):
    assert pluralize(word) == plural


def test_object_keys():
    primary = Asset(kind="photo", id="abc")
    assert object_key(primary, "png") == "photos/abc.png"

    owned = Asset(kind="photo", id="abc", owner=OwnerRef("Listing", "9"))
    assert object_key(owned, "jpeg") == "listings/abc.jpg"

    child = Asset(kind="photo.thumb", id="xyz", name="thumb", parent_id="abc", owner=OwnerRef("photo", "abc"))
    assert object_key(child, "png") == "photos/abc/thumb.png"
