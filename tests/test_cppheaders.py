import dataclasses

import pytest

from fmodpack.export.cppheaders import CppHeaderExporter, cpp_char16, cpp_string
from fmodpack.fmod.fmodpack import FmodWriter


def build_snapshot():
    writer = FmodWriter(seed=11, progress=False)
    writer.add_bytes("a.txt", b"hi")
    writer.add_bytes("b.png", b"\xff\x00")
    writer.write.write_data()
    return writer, writer.snapshot()


def test_cpp_string_escapes():
    assert cpp_string("abc") == '"abc"'
    assert cpp_string('a"b\\c') == '"a\\042b\\134c"'
    assert cpp_string("é") == '"\\303\\251"'
    assert cpp_string("a?b\n") == '"a\\077b\\012"'


def test_cpp_char16():
    assert cpp_char16("h") == "u'\\x0068'"
    assert cpp_char16("\ud83d") == "u'\\xD83D'"


def test_snapshot_is_frozen():
    _, snap = build_snapshot()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap.index_width = 4
    assert isinstance(snap.files, tuple)
    assert snap.to_dict()["files"][1] == {"path": "b.png", "offset": 4, "length": 2, "binary": True}


def test_headers_written(tmp_path):
    writer, snap = build_snapshot()
    written = CppHeaderExporter(str(tmp_path)).save(snap)

    assert sorted(written) == sorted(CppHeaderExporter.HEADER_NAMES)
    for name in CppHeaderExporter.HEADER_NAMES:
        assert (tmp_path / name).is_file()

    keys_hpp = (tmp_path / "keys.hpp").read_text(encoding="utf-8")
    assert "static const std::size_t indexWidth = 2;" in keys_hpp
    label_h = writer.table.keys["h"]
    label_i = writer.table.keys["i"]
    assert f'{{"{label_h}", 0u}}' in keys_hpp
    assert f'{{"{label_i}", 1u}}' in keys_hpp
    assert f"{{u'\\x0068', \"{label_h}\"}}" in keys_hpp

    export_hpp = (tmp_path / "export.hpp").read_text(encoding="utf-8")
    assert '{"a.txt", 0u, 4u, false}' in export_hpp
    assert '{"b.png", 4u, 2u, true}' in export_hpp

    extract_all = (tmp_path / "extractAll.hpp").read_text(encoding="utf-8")
    assert "bool skipBinary = false" in extract_all
    assert '#include "extract.hpp"' in extract_all


def test_headers_for_empty_archive(tmp_path):
    writer = FmodWriter(progress=False)
    writer.write.write_data()
    CppHeaderExporter(str(tmp_path)).save(writer.snapshot())
    export_hpp = (tmp_path / "export.hpp").read_text(encoding="utf-8")
    assert "static const std::vector<FileMeta> files = {\n\n  };" in export_hpp
