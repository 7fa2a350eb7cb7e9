# tracefile.py
"""
Reader for valgrind lackey memory traces.

    valgrind --log-fd=1 --tool=lackey -v --trace-mem=yes <program>

Each record is `[ws]<op> <hex-address>,<decimal-size>`, e.g. ` S 7ff000398,8`.
"""
import collections
import enum
import logging
import re

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"^\s*(\S+)\s+([0-9A-Fa-f]+),([0-9]+)\s*$", re.ASCII)


class Operation(enum.Enum):
    LOAD = "L"
    STORE = "S"
    MODIFY = "M"
    INSTRUCTION = "I"


TraceEvent = collections.namedtuple("TraceEvent", "op address size")


class MalformedTraceLine(ValueError):
    def __init__(self, lineno, line, reason):
        self.lineno = lineno
        self.line = line
        super().__init__(f"line {lineno}: {reason}: {line.rstrip()!r}")


def parse_line(line, lineno=1):
    """Parse one trace record. Blank lines give None."""
    if not line.strip():
        return None
    m = _LINE_RE.match(line)
    if m is None:
        raise MalformedTraceLine(lineno, line, "expected '<op> <address>,<size>'")
    code, address, size = m.groups()
    try:
        op = Operation(code)
    except ValueError:
        raise MalformedTraceLine(lineno, line, f"unknown operation {code!r}") from None
    address = int(address, 16)
    if address >> 64:
        raise MalformedTraceLine(lineno, line, "address wider than 64 bits")
    return TraceEvent(op, address, int(size))


def iter_events(lines):
    """Yield data-access events in trace order; instruction fetches are dropped."""
    for lineno, line in enumerate(lines, 1):
        event = parse_line(line, lineno)
        if event is None:
            continue
        if event.op is Operation.INSTRUCTION:
            logger.debug("line %d: skipping instruction fetch at %#x", lineno, event.address)
            continue
        yield event


def _ascii_lines(f):
    for lineno, raw in enumerate(f, 1):
        try:
            yield raw.decode("ascii")
        except UnicodeDecodeError:
            raise MalformedTraceLine(lineno, raw.decode("ascii", "replace"), "not ASCII") from None


def read_trace(path):
    with open(path, "rb") as f:
        events = list(iter_events(_ascii_lines(f)))
    logger.info("read %d events from %s", len(events), path)
    return events


def format_event(event):
    return f" {event.op.value} {event.address:x},{event.size}"
