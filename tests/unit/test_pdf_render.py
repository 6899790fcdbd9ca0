from __future__ import annotations

import base64

import pytest

from studycards.exceptions import DependencyError, DocumentLoadError, PageRenderError
from studycards.pdf_render import FitzDocumentHandle, FitzPageRasterizer, load_document, render_page
from studycards.settings import Settings
from studycards.typing.enums import ImageFormat


class _FakeMatrix:
    def __init__(self, x: float, y: float) -> None:
        self.x = x
        self.y = y


class _FakePixmap:
    def __init__(self, matrix: _FakeMatrix) -> None:
        self.matrix = matrix

    def tobytes(self, output: str) -> bytes:
        return f"{output}:{self.matrix.x}".encode()


class _FakePage:
    def __init__(self, index: int, *, broken: bool = False) -> None:
        self.index = index
        self.broken = broken

    def get_pixmap(self, matrix: _FakeMatrix, alpha: bool = True) -> _FakePixmap:  # noqa: FBT001, FBT002
        assert alpha is False
        if self.broken:
            raise RuntimeError("no drawing surface")
        return _FakePixmap(matrix)


class _FakeDoc:
    def __init__(self, pages: int = 3, *, needs_pass: bool = False, broken_page: int | None = None) -> None:
        self._pages = pages
        self.needs_pass = needs_pass
        self.broken_page = broken_page
        self.closed = False
        self.loaded: list[int] = []

    def __len__(self) -> int:
        return self._pages

    def load_page(self, idx: int) -> _FakePage:
        self.loaded.append(idx)
        return _FakePage(idx, broken=idx == self.broken_page)

    def close(self) -> None:
        self.closed = True


class _FakeFitz:
    Matrix = _FakeMatrix
    last_doc: _FakeDoc | None = None
    doc_kwargs: dict = {}

    @classmethod
    def open(cls, *, stream: bytes, filetype: str) -> _FakeDoc:
        assert filetype == "pdf"
        if stream == b"garbage":
            raise RuntimeError("cannot open broken document")
        cls.last_doc = _FakeDoc(**cls.doc_kwargs)
        return cls.last_doc


@pytest.fixture
def fake_fitz(monkeypatch) -> type[_FakeFitz]:
    _FakeFitz.last_doc = None
    _FakeFitz.doc_kwargs = {}
    monkeypatch.setattr("studycards.pdf_render.fitz", _FakeFitz)
    return _FakeFitz


def test_load_document_reports_page_count(fake_fitz) -> None:
    handle = load_document(b"%PDF-1.7")

    assert handle.page_count == 3


def test_load_document_rejects_empty_bytes(fake_fitz) -> None:
    with pytest.raises(DocumentLoadError, match="empty"):
        load_document(b"")


def test_load_document_wraps_parser_errors(fake_fitz) -> None:
    with pytest.raises(DocumentLoadError, match="cannot open broken document"):
        load_document(b"garbage")


def test_load_document_rejects_encrypted_documents(fake_fitz) -> None:
    fake_fitz.doc_kwargs = {"needs_pass": True}

    with pytest.raises(DocumentLoadError, match="password"):
        load_document(b"%PDF")
    assert fake_fitz.last_doc.closed


def test_load_document_rejects_documents_without_pages(fake_fitz) -> None:
    fake_fitz.doc_kwargs = {"pages": 0}

    with pytest.raises(DocumentLoadError, match="no pages"):
        load_document(b"%PDF")


def test_render_page_uses_scale_and_base64_png(fake_fitz) -> None:
    handle = load_document(b"%PDF")

    image = render_page(handle, 2)

    assert image.page_number == 2
    assert image.mime_type == "image/png"
    assert base64.b64decode(image.data_base64) == b"png:1.5"
    assert fake_fitz.last_doc.loaded == [1]


def test_render_page_honours_custom_format(fake_fitz) -> None:
    handle = load_document(b"%PDF")

    image = render_page(handle, 1, scale=2.0, image_format=ImageFormat.JPEG)

    assert image.mime_type == "image/jpeg"
    assert base64.b64decode(image.data_base64) == b"jpeg:2.0"


@pytest.mark.parametrize("page_number", [0, 4])
def test_render_page_rejects_pages_outside_document(fake_fitz, page_number: int) -> None:
    handle = load_document(b"%PDF")

    with pytest.raises(PageRenderError) as exc_info:
        render_page(handle, page_number)
    assert exc_info.value.page_number == page_number


def test_render_page_wraps_surface_failures(fake_fitz) -> None:
    fake_fitz.doc_kwargs = {"broken_page": 0}
    handle = load_document(b"%PDF")

    with pytest.raises(PageRenderError, match="Failed to render page 1: no drawing surface"):
        render_page(handle, 1)


def test_handle_closes_document_on_exit(fake_fitz) -> None:
    with load_document(b"%PDF") as handle:
        assert isinstance(handle, FitzDocumentHandle)

    assert fake_fitz.last_doc.closed


def test_rasterizer_from_settings(fake_fitz) -> None:
    rasterizer = FitzPageRasterizer.from_settings(
        Settings(render_scale=3.0, render_image_format=ImageFormat.JPEG),
    )
    handle = rasterizer.load_document(b"%PDF")

    image = rasterizer.render_page(handle, 3)

    assert base64.b64decode(image.data_base64) == b"jpeg:3.0"


def test_load_document_requires_pymupdf(monkeypatch) -> None:
    monkeypatch.setattr("studycards.pdf_render.fitz", None)

    with pytest.raises(DependencyError, match="pymupdf"):
        load_document(b"%PDF")
