import fitz
import orjson
import pytest

from piimask.core import (
    RunConfig,
    detect_and_redact_document,
    detect_and_redact_text,
    process_path,
)
from piimask.document import PdfDocument, _logical_hits
from piimask.errors import DocumentParseError, DocumentWriteError, ModelInferenceError


def _pdf(*pages: str) -> bytes:
    with PdfDocument.from_pages(pages) as doc:
        return doc.serialize()


def _texts(data: bytes):
    with PdfDocument.parse(data) as doc:
        return [doc.page_text(i) for i in doc.pages()]


def test_redact_text_hides_every_detected_span(gateway):
    text = "Robert O'Connor met Alice Smith in Paris."
    result = detect_and_redact_text(text, gateway)
    assert result.sanitized_text == "[GIVENNAME] [SURNAME] met [GIVENNAME] [SURNAME] in [CITY]."
    for ent in result.entities:
        assert ent.word not in result.sanitized_text


def test_document_without_pii_keeps_page_text(gateway):
    original = _pdf("Quarterly planning notes", "Action items are on the board")
    redacted = detect_and_redact_document(original, gateway)
    assert _texts(redacted) == _texts(original)


def test_single_page_hit_only_changes_that_page(gateway):
    original = _pdf("Planning notes", "Contact: Alice", "Action items")
    before = _texts(original)
    after = _texts(detect_and_redact_document(original, gateway))

    assert len(after) == 3
    assert "[GIVENNAME]" in after[1]
    assert "Alice" not in after[1]
    assert after[0] == before[0]
    assert after[2] == before[2]


def test_multiple_entities_on_one_page(gateway):
    original = _pdf("Patient: Alice\n\nCity: Paris")
    page = _texts(detect_and_redact_document(original, gateway))[0]
    assert "[GIVENNAME]" in page
    assert "[CITY]" in page
    assert "Alice" not in page
    assert "Paris" not in page


def test_literal_replace_hits_every_occurrence_on_page(gateway):
    # The first replacement of "Paris" already covers both lines.
    original = _pdf("Paris\n\nParis")
    page = _texts(detect_and_redact_document(original, gateway))[0]
    assert "Paris" not in page
    assert page.count("[CITY]") == 2


def test_literal_replace_is_case_sensitive(gateway):
    original = _pdf("Alice met PARIS fans in Paris")
    page = _texts(detect_and_redact_document(original, gateway))[0]
    assert "PARIS" in page
    assert "Paris" not in page
    assert page.count("[CITY]") == 1


def test_wrapped_hit_pieces_form_one_occurrence():
    pieces = [
        ("r1", "Alice"),
        ("r2", "Smith"),
        ("r3", "ALICE SMITH"),
        ("r4", "Alice Smith"),
    ]
    assert _logical_hits("Alice Smith", pieces) == [["r1", "r2"], ["r4"]]


def test_partial_hit_is_dropped_before_a_full_one():
    pieces = [("a", "Alice"), ("b", "Jones"), ("c", "Alice"), ("d", " Smith ")]
    assert _logical_hits("Alice Smith", pieces) == [["c", "d"]]


def test_parallel_page_detection_keeps_page_order(gateway):
    pages = [f"Page {i}" for i in range(6)]
    pages[4] = "Signed by Alice"
    original = _pdf(*pages)
    before = _texts(original)
    after = _texts(detect_and_redact_document(original, gateway, RunConfig(workers=4)))
    for i in (0, 1, 2, 3, 5):
        assert after[i] == before[i]
    assert "[GIVENNAME]" in after[4]
    assert "Alice" not in after[4]


def test_malformed_document_is_rejected(gateway):
    with pytest.raises(DocumentParseError) as info:
        detect_and_redact_document(b"definitely not a pdf", gateway)
    assert info.value.operation == "parse_document"


def test_inference_failure_names_the_page(gateway_factory):
    gw = gateway_factory(fail=True)
    with pytest.raises(ModelInferenceError) as info:
        detect_and_redact_document(_pdf("one", "two"), gw)
    assert info.value.page == 0
    assert "page 0" in str(info.value)


def test_process_path_writes_pdf_and_audit(gateway, tmp_path, monkeypatch):
    monkeypatch.setenv("PIIMASK_HMAC_KEY", "k")
    src = tmp_path / "in.pdf"
    src.write_bytes(_pdf("Contact: Alice Smith", "Nothing"))
    out = tmp_path / "out" / "in.redacted.pdf"

    res = process_path(str(src), str(out), gateway, model_ref="fake@main")

    assert out.exists()
    assert "[SURNAME]" in _texts(out.read_bytes())[0]
    audit_bytes = (tmp_path / "out" / "in.redacted.audit.json").read_bytes()
    audit = orjson.loads(audit_bytes)
    assert res["audit"].endswith("in.redacted.audit.json")
    assert audit["model"] == "fake@main"
    assert audit["result"]["summary"]["pages"] == 2
    assert audit["result"]["pages"][0]["by_label"] == {"GIVENNAME": 1, "SURNAME": 1}
    assert audit["hmac"]["alg"] == "HMAC-SHA256"
    assert b"Alice" not in audit_bytes


def test_process_path_missing_input(gateway, tmp_path):
    with pytest.raises(FileNotFoundError):
        process_path(str(tmp_path / "nope.pdf"), str(tmp_path / "out.pdf"), gateway)


def test_serialize_failure_is_a_write_error(gateway, monkeypatch):
    data = _pdf("Signed by Alice")

    def broken_tobytes(self, *args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(fitz.Document, "tobytes", broken_tobytes)
    with pytest.raises(DocumentWriteError) as info:
        detect_and_redact_document(data, gateway)
    assert info.value.operation == "serialize_document"
    assert info.value.page is None


def test_page_rewrite_failure_names_the_page(gateway, monkeypatch):
    data = _pdf("Nothing here", "Signed by Alice")

    def broken_redactions(self, *args, **kwargs):
        raise Exception("need font file or buffer")

    monkeypatch.setattr(fitz.Page, "apply_redactions", broken_redactions)
    with pytest.raises(DocumentWriteError) as info:
        detect_and_redact_document(data, gateway)
    assert info.value.operation == "replace_text"
    assert info.value.page == 1


def test_page_read_failure_names_the_page(gateway, monkeypatch):
    data = _pdf("Signed by Alice")

    def broken_get_text(self, *args, **kwargs):
        raise Exception("bad content stream")

    monkeypatch.setattr(fitz.Page, "get_text", broken_get_text)
    with pytest.raises(DocumentParseError) as info:
        detect_and_redact_document(data, gateway)
    assert info.value.operation == "read_page"
    assert info.value.page == 0
