"""PDF page access on top of PyMuPDF.

Only the narrow surface the redaction pipeline needs is exposed: parse bytes,
list pages, read page text, replace literal text on a page, serialize.
"""

from __future__ import annotations

from typing import Iterable, List, Tuple, TypeVar

import fitz  # PyMuPDF

from .errors import DocumentParseError, DocumentWriteError

T = TypeVar("T")


def _inner(rect: fitz.Rect) -> fitz.Rect:
    # Hit rects touch glyphs of neighbouring lines and words; shrink so only
    # the matched characters intersect the redaction area.
    dy = rect.height * 0.2
    dx = min(0.5, rect.width * 0.05)
    return fitz.Rect(rect.x0 + dx, rect.y0 + dy, rect.x1 - dx, rect.y1 - dy)


def _squash(text: str) -> str:
    return "".join(text.split())


def _logical_hits(old: str, pieces: Iterable[Tuple[T, str]]) -> List[List[T]]:
    """Group search hit areas into whole occurrences of ``old``.

    ``pieces`` pairs each hit area with the text found under it. A hit that
    wraps across lines arrives as consecutive pieces; areas whose text does not
    spell ``old`` exactly (case included) are dropped.
    """
    target = _squash(old)
    groups: List[List[T]] = []
    pending: List[T] = []
    seen = ""
    for area, text in pieces:
        piece = _squash(text)
        if not piece:
            continue
        if not target.startswith(seen + piece):
            pending, seen = [], ""
            if not target.startswith(piece):
                continue
        pending.append(area)
        seen += piece
        if seen == target:
            groups.append(pending)
            pending, seen = [], ""
    return groups


class PdfDocument:
    """A parsed PDF owned by a single redaction request."""

    def __init__(self, doc: fitz.Document) -> None:
        self._doc = doc

    @classmethod
    def parse(cls, data: bytes) -> "PdfDocument":
        """Open PDF bytes.

        Raises
        ------
        DocumentParseError
            If the bytes are not a PDF with at least one page.
        """
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise DocumentParseError(
                f"malformed PDF: {exc}", operation="parse_document"
            ) from exc
        if doc.page_count == 0:
            doc.close()
            raise DocumentParseError("PDF has no pages", operation="parse_document")
        return cls(doc)

    @classmethod
    def from_pages(cls, texts: Iterable[str], fontsize: float = 11) -> "PdfDocument":
        """Build a text-only PDF with one page per string."""
        doc = fitz.open()
        for text in texts:
            page = doc.new_page()
            if text:
                page.insert_text((72, 72), text, fontsize=fontsize)
        return cls(doc)

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def pages(self) -> List[int]:
        return list(range(self._doc.page_count))

    def page_text(self, index: int) -> str:
        try:
            return self._doc[index].get_text()
        except Exception as exc:
            raise DocumentParseError(
                f"could not read page text: {exc}", operation="read_page", page=index
            ) from exc

    def replace_text(self, index: int, old: str, new: str) -> int:
        """Replace every literal occurrence of ``old`` on a page with ``new``.

        Matching hits are blanked out with redaction annotations (the
        underlying glyphs are removed from the content stream) and ``new`` is
        written once per hit, at the baseline of its first line. Returns the
        number of hits.

        Matching is case-sensitive and all hits are replaced, not only the one
        a detected span came from.
        """
        if not old or not old.strip():
            return 0
        try:
            page = self._doc[index]
            quads = page.search_for(old, quads=True)
            pieces = [(q.rect, page.get_textbox(_inner(q.rect))) for q in quads]
            hits = _logical_hits(old, pieces)
            if not hits:
                return 0
            for hit in hits:
                for rect in hit:
                    page.add_redact_annot(_inner(rect), fill=(1, 1, 1))
            page.apply_redactions(images=fitz.PDF_REDACT_IMAGE_NONE)
            for hit in hits:
                rect = hit[0]
                size = max(4.0, rect.height * 0.75)
                page.insert_text(
                    fitz.Point(rect.x0, rect.y1 - rect.height * 0.2), new, fontsize=size
                )
        except Exception as exc:
            raise DocumentWriteError(
                f"could not replace {old!r}: {exc}", operation="replace_text", page=index
            ) from exc
        return len(hits)

    def serialize(self) -> bytes:
        """Return the document as PDF bytes.

        Raises
        ------
        DocumentWriteError
            If PyMuPDF cannot write the document.
        """
        try:
            return self._doc.tobytes(garbage=3, deflate=True)
        except Exception as exc:
            raise DocumentWriteError(
                f"could not serialize PDF: {exc}", operation="serialize_document"
            ) from exc

    def close(self) -> None:
        self._doc.close()

    def __enter__(self) -> "PdfDocument":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["PdfDocument"]
