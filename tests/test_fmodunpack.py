import json

import pytest

from fmodpack.fmod.fmodpack import FmodWriter
from fmodpack.fmod.fmodunpack import FmodOpener
from fmodpack.gameres.gameres import ArchiveOperation, InvalidFormatException, MissingInput
from fmodpack.gameres.utility import BUNDLE_NAME, KEYS_NAME

FILES = {
    "a.txt": b"hi",
    "docs/b.txt": "yo 😀\n".encode("utf-8"),
    "img/c.png": b"\x89PNG\x00\xff",
    "empty.md": b"",
}


def pack_to(mod_dir, files=FILES):
    writer = FmodWriter(seed=5, progress=False)
    for path, data in files.items():
        writer.add_bytes(path, data)
    writer.write.write_data()
    writer.save.to_dir(str(mod_dir))
    return writer


def load_keys(mod_dir):
    return json.loads((mod_dir / KEYS_NAME).read_text(encoding="utf-8"))


def dump_keys(mod_dir, meta):
    (mod_dir / KEYS_NAME).write_text(json.dumps(meta), encoding="utf-8")


def test_extract_all_round_trip(tmp_path):
    mod = tmp_path / "mod"
    out = tmp_path / "out"
    pack_to(mod)

    with FmodOpener().try_open(str(mod)) as arc:
        assert arc.table.frozen
        report = arc.extract_all(str(out), progress=False)

    assert report.ok
    assert report.extracted == list(FILES)
    for path, data in FILES.items():
        assert (out / path).read_bytes() == data


def test_missing_inputs(tmp_path):
    with pytest.raises(MissingInput):
        FmodOpener().try_open(str(tmp_path))

    (tmp_path / BUNDLE_NAME).write_bytes(b"")
    with pytest.raises(MissingInput):
        FmodOpener().try_open(str(tmp_path))


def test_broken_keys_json(tmp_path):
    (tmp_path / BUNDLE_NAME).write_bytes(b"")
    (tmp_path / KEYS_NAME).write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidFormatException):
        FmodOpener().try_open(str(tmp_path))

    (tmp_path / KEYS_NAME).write_bytes(b'{"keys": {"\xff": "x"}, "bin": {}, "files": []}')
    with pytest.raises(InvalidFormatException):
        FmodOpener().try_open(str(tmp_path))

    dump_keys(tmp_path, {"keys": {}, "bin": {}})
    with pytest.raises(InvalidFormatException):
        FmodOpener().try_open(str(tmp_path))

    dump_keys(tmp_path, {"keys": {}, "bin": {}, "files": [{"path": "a", "offset": -1, "length": 0, "binary": True}]})
    with pytest.raises(InvalidFormatException):
        FmodOpener().try_open(str(tmp_path))


def test_empty_archive(tmp_path):
    mod = tmp_path / "mod"
    pack_to(mod, files={})
    assert (mod / BUNDLE_NAME).read_bytes() == b""

    with FmodOpener().try_open(str(mod)) as arc:
        report = arc.extract_all(str(tmp_path / "out"), progress=False)
    assert report.ok
    assert report.extracted == []


def test_decode_failure_is_isolated_per_file(tmp_path):
    mod = tmp_path / "mod"
    out = tmp_path / "out"
    pack_to(mod)

    # "y"는 docs/b.txt에만 나오는 문자. 테이블에서 빼면 그 파일만 실패해야 함
    meta = load_keys(mod)
    label = meta["keys"].pop("y")
    del meta["bin"][label]
    dump_keys(mod, meta)

    with FmodOpener().try_open(str(mod)) as arc:
        report = arc.extract_all(str(out), progress=False)

    assert not report.ok
    assert [path for path, _ in report.failed] == ["docs/b.txt"]
    assert not (out / "docs" / "b.txt").exists()
    assert (out / "a.txt").read_bytes() == b"hi"
    assert (out / "img" / "c.png").read_bytes() == FILES["img/c.png"]


def test_out_of_range_record_fails_alone(tmp_path):
    mod = tmp_path / "mod"
    pack_to(mod)
    meta = load_keys(mod)
    meta["files"][0]["length"] = 10_000
    dump_keys(mod, meta)

    with FmodOpener().try_open(str(mod)) as arc:
        report = arc.extract_all(str(tmp_path / "out"), progress=False)

    assert [path for path, _ in report.failed] == ["a.txt"]
    assert len(report.extracted) == len(FILES) - 1


@pytest.mark.parametrize("bad_path", ["../evil.txt", "/abs/evil.txt", "a/../../evil.txt", ""])
def test_unsafe_paths_are_rejected(tmp_path, bad_path):
    mod = tmp_path / "mod"
    out = tmp_path / "out"
    pack_to(mod, files={"a.bin": b"\x01"})
    meta = load_keys(mod)
    meta["files"][0]["path"] = bad_path
    dump_keys(mod, meta)

    with FmodOpener().try_open(str(mod)) as arc:
        report = arc.extract_all(str(out), progress=False)

    assert len(report.failed) == 1
    assert not (tmp_path / "evil.txt").exists()


def test_skip_binary(tmp_path):
    mod = tmp_path / "mod"
    out = tmp_path / "out"
    pack_to(mod)

    with FmodOpener().try_open(str(mod)) as arc:
        report = arc.extract_all(str(out), skip_binary=True, progress=False)

    assert report.skipped == ["img/c.png"]
    assert not (out / "img" / "c.png").exists()
    assert (out / "a.txt").exists()


def test_callback_abort(tmp_path):
    mod = tmp_path / "mod"
    pack_to(mod)

    def abort_on_second(index, entry, label):
        return ArchiveOperation.ABORT if index == 1 else ArchiveOperation.CONTINUE

    with FmodOpener().try_open(str(mod)) as arc:
        with pytest.raises(InterruptedError):
            arc.extract_all(str(tmp_path / "out"), callback=abort_on_second, progress=False)

    assert (tmp_path / "out" / "a.txt").exists()


def test_reads_metadata_without_index_width(tmp_path):
    # index_width가 없는 keys.json (원래 포맷)은 2바이트로 읽음
    (tmp_path / BUNDLE_NAME).write_bytes(b"\x00\x00\x00\x01\x00\x00")
    dump_keys(tmp_path, {
        "keys": {"h": "abcdefg", "i": "hijklmno"},
        "bin": {"abcdefg": 0, "hijklmno": 1},
        "files": [{"path": "sub\\hi.txt", "offset": 0, "length": 6, "binary": False}],
    })

    with FmodOpener().try_open(str(tmp_path)) as arc:
        assert arc.table.index_width == 2
        assert arc.entries[0].path == "sub/hi.txt"
        assert arc.read_entry(arc.entries[0]) == b"hih"


def test_reopened_snapshot_matches_writer(tmp_path):
    mod = tmp_path / "mod"
    writer = pack_to(mod)

    with FmodOpener().try_open(str(mod)) as arc:
        assert arc.snapshot() == writer.snapshot()
