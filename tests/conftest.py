"""Pytest configuration for bigpdfassembler tests.

Provides real pikepdf documents for codec and orchestrator integration
tests, plus a fake codec, clock and timer factory for failure and
scheduling scenarios that must not sleep.
"""

import io
from dataclasses import dataclass, field

import pikepdf
import pytest

from bigpdfassembler.services.page_model import SourceDocument
from bigpdfassembler.utils.exceptions import CodecError

# ---------------------------------------------------------------------------
# Real PDFs
# ---------------------------------------------------------------------------


def make_pdf_bytes(num_pages: int = 3, width_base: int = 600, rotate: int | None = None) -> bytes:
    """Build a PDF whose page i has MediaBox width ``width_base + i``.

    The width identifies a page after it has been merged or split.
    """
    pdf = pikepdf.Pdf.new()
    for i in range(num_pages):
        page = pikepdf.Page(
            pikepdf.Dictionary(
                Type=pikepdf.Name.Page,
                MediaBox=[0, 0, width_base + i, 800],
                Contents=pdf.make_stream(f"BT /F1 12 Tf 100 700 Td (Page {i + 1}) Tj ET".encode()),
            )
        )
        pdf.pages.append(page)
        if rotate is not None:
            pdf.pages[-1].Rotate = rotate
    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def page_widths(data: bytes) -> list[int]:
    """MediaBox widths of every page of a serialized PDF."""
    with pikepdf.open(io.BytesIO(data)) as pdf:
        return [int(page.mediabox[2]) for page in pdf.pages]


def page_rotations(data: bytes) -> list[int]:
    with pikepdf.open(io.BytesIO(data)) as pdf:
        return [int(page.obj.get("/Rotate", 0)) for page in pdf.pages]


def make_source(name: str, num_pages: int, width_base: int = 600, **kwargs) -> SourceDocument:
    """In-memory SourceDocument backed by a real PDF."""
    data = make_pdf_bytes(num_pages, width_base, **kwargs)
    return SourceDocument(name=name, page_count=num_pages, size_bytes=len(data), data=data)


@pytest.fixture
def pdf_file(tmp_path):
    """Factory writing a test PDF into tmp_path and returning its path."""

    def _make(name: str = "report.pdf", num_pages: int = 3, width_base: int = 600) -> str:
        path = tmp_path / name
        path.write_bytes(make_pdf_bytes(num_pages, width_base))
        return str(path)

    return _make


# ---------------------------------------------------------------------------
# Fake time
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeTimer:
    def __init__(self, due: float, callback) -> None:
        self.due = due
        self.callback = callback
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def pending(self) -> bool:
        return self.started and not self.cancelled and not self.fired


class FakeTimerFactory:
    """Timer factory whose timers only fire when ``advance`` is called."""

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.timers: list[FakeTimer] = []

    def __call__(self, interval_s: float, callback) -> FakeTimer:
        timer = FakeTimer(self.clock.now + interval_s, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self.timers if t.pending]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due timers in time order."""
        target = self.clock.now + seconds
        while True:
            due = sorted((t for t in self.pending if t.due <= target), key=lambda t: t.due)
            if not due:
                break
            timer = due[0]
            self.clock.now = max(self.clock.now, timer.due)
            timer.fired = True
            timer.callback()
        self.clock.now = target


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers(clock):
    return FakeTimerFactory(clock)


# ---------------------------------------------------------------------------
# Fake codec
# ---------------------------------------------------------------------------


@dataclass
class FakePage:
    source: str
    index: int
    rotation: int = 0


@dataclass
class FakeDocument:
    name: str
    pages: list[FakePage] = field(default_factory=list)
    metadata: object = None
    encryption: object = None
    closed: bool = False
    is_output: bool = False


class FakeCodec:
    """PdfCodec stand-in; a document's bytes are its page count as text.

    Args:
        fail_load: Document names whose load fails
        fail_save_at: 1-based save call that fails
    """

    def __init__(self, fail_load: tuple[str, ...] = (), fail_save_at: int | None = None) -> None:
        self.fail_load = fail_load
        self.fail_save_at = fail_save_at
        self.calls: list[tuple] = []
        self.documents: list[FakeDocument] = []
        self.saved: list[FakeDocument] = []
        self.save_options: list = []
        self.save_count = 0
        self.max_open_outputs = 0

    def _open_outputs(self) -> int:
        return sum(1 for d in self.documents if d.is_output and not d.closed)

    def load(self, data: bytes, name: str = ""):
        self.calls.append(("load", name))
        if name in self.fail_load:
            raise CodecError(name, "corrupt file")
        count = int(data.decode())
        document = FakeDocument(name, [FakePage(name, i) for i in range(count)])
        self.documents.append(document)
        return document, count

    def copy_pages(self, source: FakeDocument, indices: list[int]) -> list[FakePage]:
        self.calls.append(("copy_pages", source.name, list(indices)))
        return [source.pages[i] for i in indices]

    def create_document(self, name: str = "") -> FakeDocument:
        self.calls.append(("create_document", name))
        document = FakeDocument(name, is_output=True)
        self.documents.append(document)
        self.max_open_outputs = max(self.max_open_outputs, self._open_outputs())
        return document

    def add_page(self, document: FakeDocument, page: FakePage) -> FakePage:
        added = FakePage(page.source, page.index, page.rotation)
        document.pages.append(added)
        return added

    def set_rotation(self, page: FakePage, degrees: int) -> None:
        page.rotation = degrees

    def set_metadata(self, document: FakeDocument, metadata) -> None:
        self.calls.append(("set_metadata", document.name))
        document.metadata = metadata

    def encrypt(self, document: FakeDocument, options) -> None:
        self.calls.append(("encrypt", document.name))
        document.encryption = options

    def save(self, document: FakeDocument, options) -> bytes:
        self.calls.append(("save", document.name))
        self.save_count += 1
        if self.save_count == self.fail_save_at:
            raise CodecError(document.name, "disk full")
        self.saved.append(document)
        self.save_options.append(options)
        return repr([(p.source, p.index, p.rotation) for p in document.pages]).encode()

    def close(self, document: FakeDocument) -> None:
        document.closed = True


def fake_source(name: str, num_pages: int) -> SourceDocument:
    """SourceDocument readable by FakeCodec."""
    return SourceDocument(name=name, page_count=num_pages, data=str(num_pages).encode())


@pytest.fixture
def codec():
    return FakeCodec()
