from __future__ import annotations

from pathlib import Path

import pytest


def test_iter_records_scans_sequentially() -> None:
    from mpylib_pack.header import encode_header
    from mpylib_pack.reader import iter_records

    data = encode_header("lib/a", 3) + b"abc" + encode_header("lib/empty", 0) + encode_header("lib/b", 1) + b"z"
    recs = list(iter_records(data))
    assert [r.name for r in recs] == ["lib/a", "lib/empty", "lib/b"]
    assert [r.payload for r in recs] == [b"abc", b"", b"z"]
    assert recs[0].offset == 0
    assert recs[1].offset == 16 + 5 + 3


def test_empty_container_has_no_records() -> None:
    from mpylib_pack.reader import iter_records

    assert list(iter_records(b"")) == []


def test_truncated_payload_is_corrupt() -> None:
    from mpylib_pack.errors import CorruptContainer
    from mpylib_pack.header import encode_header
    from mpylib_pack.reader import iter_records

    data = encode_header("a", 10) + b"short"
    with pytest.raises(CorruptContainer):
        list(iter_records(data))


def test_trailing_garbage_is_rejected() -> None:
    from mpylib_pack.errors import BadMagic, CorruptContainer
    from mpylib_pack.header import encode_header
    from mpylib_pack.reader import iter_records

    data = encode_header("a", 1) + b"x"
    with pytest.raises(CorruptContainer):
        list(iter_records(data + b"\x01\x02"))
    with pytest.raises(BadMagic):
        list(iter_records(data + b"\x00" * 32))


def test_verify_container_detects_duplicate_names(tmp_path: Path) -> None:
    from mpylib_pack.errors import CorruptContainer
    from mpylib_pack.header import encode_header
    from mpylib_pack.reader import verify_container

    ok = tmp_path / "ok.mpylib"
    ok.write_bytes(encode_header("a", 1) + b"1" + encode_header("b", 1) + b"2")
    assert verify_container(ok) == 2

    dup = tmp_path / "dup.mpylib"
    dup.write_bytes(encode_header("a", 1) + b"1" + encode_header("a", 1) + b"2")
    with pytest.raises(CorruptContainer):
        verify_container(dup)


def test_read_container_missing_file(tmp_path: Path) -> None:
    from mpylib_pack.errors import IOFailure
    from mpylib_pack.reader import read_container

    with pytest.raises(IOFailure):
        read_container(tmp_path / "nope.mpylib")
