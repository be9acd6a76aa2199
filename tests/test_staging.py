from io import BytesIO

import pytest

from graffic.core.errors import ValidationError
from graffic.lifecycle.staging import StagingStore


def test_write_read_delete_bytes(tmp_path):
    staging = StagingStore(tmp_path / "staging")

    path = staging.write("abc", b"hello")

    assert path == tmp_path / "staging" / "abc.tmp"
    assert staging.read("abc") == b"hello"
    staging.delete("abc")
    assert not staging.exists("abc")


def test_delete_is_idempotent(tmp_path):
    staging = StagingStore(tmp_path)
    staging.delete("never-written")
    staging.delete("never-written")


def test_write_from_stream_and_path(tmp_path):
    staging = StagingStore(tmp_path / "staging")
    src = tmp_path / "input.png"
    src.write_bytes(b"from-file")

    staging.write("a", BytesIO(b"from-stream"))
    staging.write("b", str(src))

    assert staging.read("a") == b"from-stream"
    assert staging.read("b") == b"from-file"


def test_missing_path_and_unknown_input(tmp_path):
    staging = StagingStore(tmp_path)

    with pytest.raises(ValidationError):
        staging.write("a", str(tmp_path / "nope.png"))
    with pytest.raises(ValidationError):
        staging.write("b", 42)
