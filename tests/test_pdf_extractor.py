import io

import pytest
from pypdf import PdfWriter

from paperplain.exceptions import LLMRequestError, UnreadablePdfError
from paperplain.models import SourceType
from paperplain.pdf_extractor import (
    PdfExtractor,
    extract_pdf_text,
    guess_abstract,
    guess_title_and_authors,
    parse_labeled_metadata,
    pseudo_abstract,
    sanitize_text,
)


class FakeChatClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def complete(self, system_prompt, user_prompt, temperature, max_tokens):
        self.calls.append({"user_prompt": user_prompt, "temperature": temperature})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


PAPER_TEXT = """Efficient Transformers for Long Sequences
Ada Lovelace, Alan Turing and Grace Hopper
University of Somewhere

Abstract
Transformers scale quadratically with sequence length. We introduce a
linear attention variant that keeps accuracy on long-range benchmarks.

Keywords: attention, efficiency

1 Introduction
Long inputs are common in practice and existing models struggle with them.
""" + "Body text continues here. " * 20


def _blank_pdf_bytes():
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def test_blank_pdf_is_unreadable_without_llm_call():
    chat = FakeChatClient([])
    extractor = PdfExtractor(chat_client=chat)

    with pytest.raises(UnreadablePdfError, match="scanned image"):
        extractor.extract(_blank_pdf_bytes())

    assert chat.calls == []


def test_garbage_bytes_are_unreadable():
    with pytest.raises(UnreadablePdfError):
        extract_pdf_text(b"this is not a pdf at all")


def test_sanitize_text_removes_control_characters():
    assert sanitize_text("a\x00b\x07c\nd\te") == "abc\nd\te"


def test_parse_labeled_metadata():
    response = """TITLE: Efficient Transformers
for Long Sequences
AUTHORS: Ada Lovelace, Alan Turing
ABSTRACT: UNKNOWN"""

    metadata = parse_labeled_metadata(response)

    assert metadata.title == "Efficient Transformers for Long Sequences"
    assert metadata.authors == "Ada Lovelace, Alan Turing"
    assert metadata.abstract is None


def test_parse_labeled_metadata_accepts_bold_labels():
    metadata = parse_labeled_metadata("**Title:** A\n**Authors:** B\n**Abstract:** C")

    assert (metadata.title, metadata.authors, metadata.abstract) == ("A", "B", "C")


def test_guess_title_and_authors():
    title, authors = guess_title_and_authors(PAPER_TEXT)

    assert title == "Efficient Transformers for Long Sequences"
    assert authors == "Ada Lovelace, Alan Turing and Grace Hopper"


def test_guess_abstract_stops_at_keywords():
    abstract = guess_abstract(PAPER_TEXT)

    assert abstract.startswith("Transformers scale quadratically")
    assert abstract.endswith("long-range benchmarks.")
    assert "Keywords" not in abstract


def test_guess_abstract_ignores_wrapped_line_starting_with_stop_word():
    text = (
        "Sparse Attention Study\n"
        "Abstract\n"
        "We study the effect of the\n"
        "introduction of sparse attention on long documents.\n"
        "Contents of the cache are reused across layers.\n"
        "\n"
        "1 Introduction\n"
        "Long documents are common.\n"
    )

    abstract = guess_abstract(text)

    assert abstract == (
        "We study the effect of the introduction of sparse attention on long "
        "documents. Contents of the cache are reused across layers."
    )


@pytest.mark.parametrize(
    "stop_line", ["I. INTRODUCTION", "1. Introduction", "Index Terms—graphs, attention", "Keywords"]
)
def test_guess_abstract_stops_at_section_headings(stop_line):
    text = f"Abstract\nShort abstract body.\n{stop_line}\nMore text."

    assert guess_abstract(text) == "Short abstract body."


def test_guess_abstract_missing_heading():
    assert guess_abstract("No heading in this text at all.") is None


def test_pseudo_abstract_is_bounded():
    assert len(pseudo_abstract("word " * 1000)) <= 1800


def test_extract_uses_llm_metadata_when_complete():
    chat = FakeChatClient(
        [
            "TITLE: Efficient Transformers for Long Sequences\n"
            "AUTHORS: Ada Lovelace, Alan Turing, Grace Hopper\n"
            "ABSTRACT: Transformers scale quadratically with sequence length."
        ]
    )
    extractor = PdfExtractor(chat_client=chat, text_extractor=lambda content: PAPER_TEXT)

    extraction = extractor.extract_metadata(PAPER_TEXT)
    paper = PdfExtractor(
        chat_client=FakeChatClient(
            ["TITLE: T\nAUTHORS: A\nABSTRACT: " + "x" * 5000]
        ),
        text_extractor=lambda content: PAPER_TEXT,
    ).extract(b"%PDF")

    assert extraction.used_fallback is False
    assert extraction.metadata.authors == "Ada Lovelace, Alan Turing, Grace Hopper"
    assert chat.calls[0]["temperature"] == 0.1
    assert PAPER_TEXT[:100] in chat.calls[0]["user_prompt"]
    assert paper.source_type is SourceType.PDF
    assert paper.title == "T"
    assert len(paper.abstract) == 4000


def test_llm_input_is_limited():
    long_text = "A" * 50_000
    chat = FakeChatClient(["TITLE: T\nAUTHORS: A\nABSTRACT: B"])

    PdfExtractor(chat_client=chat).extract_metadata(long_text)

    assert "A" * 28_000 in chat.calls[0]["user_prompt"]
    assert "A" * 28_001 not in chat.calls[0]["user_prompt"]


def test_extract_falls_back_to_heuristics_on_llm_failure():
    chat = FakeChatClient([LLMRequestError("down")])
    extractor = PdfExtractor(chat_client=chat)

    extraction = extractor.extract_metadata(PAPER_TEXT)

    assert extraction.used_fallback is True
    assert extraction.metadata.title == "Efficient Transformers for Long Sequences"
    assert extraction.metadata.abstract.startswith("Transformers scale quadratically")


def test_partial_llm_answer_is_merged_with_heuristics():
    chat = FakeChatClient(["TITLE: Real Title\nAUTHORS: UNKNOWN\nABSTRACT: UNKNOWN"])

    extraction = PdfExtractor(chat_client=chat).extract_metadata(PAPER_TEXT)

    assert extraction.used_fallback is True
    assert extraction.metadata.title == "Real Title"
    assert extraction.metadata.authors == "Ada Lovelace, Alan Turing and Grace Hopper"


def test_no_abstract_heading_uses_pseudo_abstract():
    text = "Short\n" + "Plain body sentence without structure. " * 80
    extraction = PdfExtractor().extract_metadata(text)

    assert extraction.used_fallback is True
    assert extraction.metadata.abstract == pseudo_abstract(text)


def test_unrecoverable_fields_get_placeholders():
    text = "1234 5678\n" * 50
    paper = PdfExtractor(text_extractor=lambda content: text).extract(b"%PDF")

    assert paper.title == "Untitled PDF"
    assert paper.authors == "Unknown Authors"
    assert paper.abstract
