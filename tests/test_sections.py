"""
Tests for skipping and isolating sections.
"""

from pathlib import Path

import pytest

from lineconf.config.lexer import ConfigReaderError, ErrorKind, LineType
from lineconf.config.reader import ConfigReader


NESTED = """\
before = 1
outer a {
    x = 1
    inner b {
        y = 2
        text = '''
}
not a close
'''
    }
    z = 3
}
after = 2
"""


def nested_sections(levels: int) -> str:
    """A section holding `levels` nested sections inside it."""
    opens = "".join(f"level{i} x {{\n" for i in range(levels + 1))
    return "top = 1\n" + opens + "}\n" * (levels + 1) + "after = 1\n"


def keys(reader: ConfigReader) -> list[str]:
    result = []
    for line in reader:
        if line.type == LineType.LINE:
            result.append(line.key)
        elif line.type == LineType.SECTION:
            result.append(f"{line.name}{{")
        else:
            result.append("}")
    return result


def test_skip_section(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        assert reader.skip_section(section) is True
        assert reader.read_line().key == "after"


def test_skip_requires_a_section_opening(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        line = reader.read_line()

        with pytest.raises(ValueError):
            reader.skip_section(line)
        assert reader.error is None


def test_skip_without_close_returns_false(write_config) -> None:
    path = write_config("s x {\n  a = 1\n  t y {\n  }\n")

    with ConfigReader(path) as reader:
        section = reader.read_line()

        assert reader.skip_section(section) is False
        assert reader.error is None


def test_skip_ten_nested_levels(write_config) -> None:
    path = write_config(nested_sections(10))

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        assert reader.skip_section(section) is True
        assert reader.read_line().key == "after"


def test_skip_eleven_nested_levels_is_too_deep(write_config) -> None:
    path = write_config(nested_sections(11))

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with pytest.raises(ConfigReaderError) as exc_info:
            reader.skip_section(section)

        assert exc_info.value.kind == ErrorKind.RECURSION_TOO_DEEP
        assert exc_info.value.message == "Recursion level too deep"
        assert reader.error is exc_info.value


def test_isolate_section_yields_exactly_the_body(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with reader.isolate_section(section) as isolated:
            assert keys(isolated) == ["x", "inner{", "y", "text", "}", "z"]
            assert isolated.read_line() is None


def test_isolate_leaves_original_after_the_opening_line(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()
        position = reader.position

        isolated = reader.isolate_section(section)
        isolated.close()

        assert reader.position == position
        assert reader.line == 2
        assert keys(reader) == ["x", "inner{", "y", "text", "}", "z", "}", "after"]


def test_isolated_reader_is_bounded(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with reader.isolate_section(section) as isolated:
            begin, end = isolated.isolation
            assert begin == reader.position
            assert end == len(NESTED.encode()) - len("after = 2\n")
            assert isolated.path == reader.path


def test_isolated_reader_keeps_real_line_numbers(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with reader.isolate_section(section) as isolated:
            assert [line.line for line in isolated] == [3, 4, 5, 6, 10, 11]


def test_isolated_multiline_keeps_braces(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        outer = reader.read_line()

        with reader.isolate_section(outer) as isolated:
            isolated.read_line()
            inner = isolated.read_line()
            with isolated.isolate_section(inner) as innermost:
                assert innermost.read_line().key == "y"
                assert innermost.read_line().value == "}\nnot a close\n"
                assert innermost.read_line() is None


def test_readers_are_independent(write_config) -> None:
    path = write_config(NESTED)

    reader = ConfigReader(path)
    reader.read_line()
    section = reader.read_line()
    isolated = reader.isolate_section(section)

    try:
        isolated.error = ConfigReaderError("isolated only", ErrorKind.IO_FAILURE)
        assert reader.read_line().key == "x"

        reader.close()
        assert not isolated.closed

        isolated.error = None
        assert keys(isolated) == ["x", "inner{", "y", "text", "}", "z"]
    finally:
        isolated.close()


def test_isolate_failure_leaves_original_usable(write_config) -> None:
    path = write_config("s x {\n  a = 1\n")

    with ConfigReader(path) as reader:
        section = reader.read_line()
        position = reader.position

        with pytest.raises(ConfigReaderError) as exc_info:
            reader.isolate_section(section)

        assert exc_info.value.kind == ErrorKind.ISOLATION_FAILURE
        assert exc_info.value.message == "Unknown error while isolating section"
        assert reader.error is None
        assert reader.position == position
        assert reader.read_line().key == "a"


def test_isolate_failure_chains_the_cause(write_config) -> None:
    path = write_config(nested_sections(11))

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with pytest.raises(ConfigReaderError) as exc_info:
            reader.isolate_section(section)

        assert exc_info.value.kind == ErrorKind.ISOLATION_FAILURE
        assert exc_info.value.__cause__.kind == ErrorKind.RECURSION_TOO_DEEP
        assert reader.error is None


def test_nested_isolation_never_widens(write_config) -> None:
    path = write_config("outer x {\n  inner y {\n    a = 1\n  }\n  b = 2\n}\n")

    with ConfigReader(path) as reader:
        outer = reader.read_line()
        with reader.isolate_section(outer) as isolated:
            inner = isolated.read_line()
            with isolated.isolate_section(inner) as innermost:
                assert innermost.isolation[0] >= isolated.isolation[0]
                assert innermost.isolation[1] < isolated.isolation[1]
                assert keys(innermost) == ["a"]


def test_detach_section_moves_original_past_the_close(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        reader.read_line()
        section = reader.read_line()

        with reader.detach_section(section) as isolated:
            assert reader.read_line().key == "after"
            assert keys(isolated) == ["x", "inner{", "y", "text", "}", "z"]


def test_isolate_requires_a_section_opening(write_config) -> None:
    path = write_config(NESTED)

    with ConfigReader(path) as reader:
        line = reader.read_line()

        with pytest.raises(ValueError):
            reader.isolate_section(line)


def test_isolation_does_not_leak_handles(write_config, monkeypatch) -> None:
    path = write_config("s x {\n  a = 1\n}\n")
    opened: list[ConfigReader] = []
    original_init = ConfigReader.__init__

    def tracking_init(self, *args, **kwargs):
        original_init(self, *args, **kwargs)
        opened.append(self)

    monkeypatch.setattr(ConfigReader, "__init__", tracking_init)

    with ConfigReader(path) as reader:
        section = reader.read_line()
        isolated = reader.isolate_section(section)
        isolated.close()

    assert len(opened) == 3
    assert all(r.closed for r in opened)


def test_isolation_failure_does_not_leak_handles(write_config, monkeypatch) -> None:
    path = write_config("s x {\n  a = 1\n")
    opened: list[ConfigReader] = []
    original_init = ConfigReader.__init__

    def tracking_init(self, *args, **kwargs):
        original_init(self, *args, **kwargs)
        opened.append(self)

    monkeypatch.setattr(ConfigReader, "__init__", tracking_init)

    with ConfigReader(path) as reader:
        section = reader.read_line()
        with pytest.raises(ConfigReaderError):
            reader.isolate_section(section)

        assert all(r.closed for r in opened[1:])


def test_skip_within_isolated_reader_stops_at_boundary(tmp_path: Path) -> None:
    path = tmp_path / "bounded.conf"
    path.write_text("outer x {\n  inner y {\n    a = 1\n  }\n  b = 2\n}\nc = 3\n")

    with ConfigReader(path) as reader:
        outer = reader.read_line()
        with reader.isolate_section(outer) as isolated:
            inner = isolated.read_line()
            assert isolated.skip_section(inner) is True
            assert isolated.read_line().key == "b"
            assert isolated.read_line() is None
