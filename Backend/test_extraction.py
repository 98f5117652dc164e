from unittest.mock import patch

import fitz

from extraction import extract_text


def make_pdf(*pages):
    pdf = fitz.open()
    for text in pages:
        page = pdf.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = pdf.tobytes()
    pdf.close()
    return data


def test_extracts_pages_in_order():
    text = extract_text(make_pdf("Invoice 42", "Issued by Finance"))

    assert "Invoice 42" in text
    assert "Issued by Finance" in text
    assert text.index("Invoice 42") < text.index("Issued by Finance")
    assert text == text.strip()


def test_pages_are_separated_by_newline():
    text = extract_text(make_pdf("First", "Second"))

    assert "\n" in text[text.index("First"):text.index("Second")]


def test_blank_pdf_yields_empty_string():
    assert extract_text(make_pdf("")) == ""


def test_corrupt_file_yields_empty_string():
    assert extract_text(b"definitely not a pdf") == ""


def test_empty_input_yields_empty_string():
    assert extract_text(b"") == ""


def test_unexpected_parser_error_is_absorbed():
    with patch("extraction.fitz.open", side_effect=RuntimeError("boom")):
        assert extract_text(b"%PDF-1.4") == ""
