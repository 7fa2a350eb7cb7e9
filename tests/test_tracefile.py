import logging

import pytest

from tracefile import MalformedTraceLine, Operation, TraceEvent, format_event, iter_events, parse_line, read_trace

TRACE = """\
I 10,1
 L 10,1
 M 20,1
 L 22,1
 S 18,1
 L 110,1
 L 210,1
 M 12,1
"""


def test_parse_line():
    assert parse_line(" S 7ff000398,8") == TraceEvent(Operation.STORE, 0x7FF000398, 8)
    assert parse_line("I  0400d7d4,8") == TraceEvent(Operation.INSTRUCTION, 0x400D7D4, 8)
    assert parse_line("\tM 0421c7f0,4\n") == TraceEvent(Operation.MODIFY, 0x421C7F0, 4)


def test_blank_line_is_none():
    assert parse_line("   \n") is None


def test_iter_events_drops_instruction_fetches():
    events = list(iter_events(TRACE.splitlines()))
    assert [e.op for e in events] == [
        Operation.LOAD, Operation.MODIFY, Operation.LOAD, Operation.STORE,
        Operation.LOAD, Operation.LOAD, Operation.MODIFY,
    ]
    assert [e.address for e in events] == [0x10, 0x20, 0x22, 0x18, 0x110, 0x210, 0x12]


def test_only_instruction_fetches():
    assert list(iter_events(["I 10,1"])) == []


@pytest.mark.parametrize("line", [
    " X 10,1",
    " L 10",
    " L zz,1",
    " L 10,-1",
    " L 10,1 extra",
    "L",
    " L 10000000000000000,1",
    " L 10,\u0663",
    " L \u0661\u0660,1",
])
def test_malformed_lines(line):
    with pytest.raises(MalformedTraceLine):
        parse_line(line)


def test_malformed_line_reports_position():
    with pytest.raises(MalformedTraceLine) as excinfo:
        list(iter_events([" L 10,1", " Q 10,1"]))
    assert excinfo.value.lineno == 2
    assert "line 2" in str(excinfo.value)


def test_read_trace(tmp_path):
    path = tmp_path / "yi.trace"
    path.write_text(TRACE)
    events = read_trace(str(path))
    assert len(events) == 7
    assert events[0] == TraceEvent(Operation.LOAD, 0x10, 1)


def test_format_event():
    assert format_event(TraceEvent(Operation.MODIFY, 0x20, 1)) == " M 20,1"


def test_read_trace_rejects_non_ascii(tmp_path):
    path = tmp_path / "binary.trace"
    path.write_bytes(b" L 10,1\n L \xff\xfe,1\n")
    with pytest.raises(MalformedTraceLine) as excinfo:
        read_trace(str(path))
    assert excinfo.value.lineno == 2
    assert "not ASCII" in str(excinfo.value)


def test_dropped_instruction_fetch_is_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="tracefile"):
        assert list(iter_events(["I 400d7d4,8", " L 10,1"])) == [TraceEvent(Operation.LOAD, 0x10, 1)]
    assert "line 1: skipping instruction fetch at 0x400d7d4" in caplog.text
