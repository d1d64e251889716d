"""Unit tests for the chunker module."""

from pdf_vectorstore.ingestion.chunker import SEPARATORS, chunk_segments, split_segment, build_splitter
from pdf_vectorstore.ingestion.models import PageSegment


def _page(text: str, page_number: int = 1, source: str = "guide.pdf") -> PageSegment:
    return PageSegment(text=text, page_number=page_number, source=source)


def _overlap(prev: str, nxt: str) -> int:
    """Length of the longest suffix of *prev* that is a prefix of *nxt*."""
    for k in range(min(len(prev), len(nxt)), 0, -1):
        if prev.endswith(nxt[:k]):
            return k
    return 0


def test_separators_in_priority_order() -> None:
    assert SEPARATORS == ["\n\n", "\n", ".", "!", "?", ";", ":", " ", ""]


def test_short_text_yields_single_trimmed_chunk() -> None:
    chunks = chunk_segments([_page("   A short paragraph.\n\nAnd another one.  \n")], chunk_size=500)
    assert len(chunks) == 1
    assert chunks[0].text == "A short paragraph.\n\nAnd another one."


def test_whitespace_only_page_yields_nothing() -> None:
    assert chunk_segments([_page("  \n\n \t ")]) == []


def test_empty_input() -> None:
    assert chunk_segments([]) == []


def test_long_text_respects_size_and_overlap() -> None:
    text = " ".join(f"w{i}" for i in range(600))
    chunks = chunk_segments([_page(text)], chunk_size=200, chunk_overlap=40)
    assert len(chunks) > 1
    assert all(len(c.text) <= 200 for c in chunks)
    for prev, nxt in zip(chunks, chunks[1:]):
        assert _overlap(prev.text, nxt.text) <= 40


def test_consecutive_chunks_share_text() -> None:
    text = " ".join(f"w{i}" for i in range(600))
    chunks = chunk_segments([_page(text)], chunk_size=200, chunk_overlap=40)
    assert any(_overlap(a.text, b.text) > 0 for a, b in zip(chunks, chunks[1:]))


def test_paragraph_breaks_preferred() -> None:
    first = "Alpha " * 30
    second = "Beta " * 30
    chunks = chunk_segments([_page(f"{first.strip()}\n\n{second.strip()}")], chunk_size=200, chunk_overlap=0)
    assert [c.text.split()[0] for c in chunks] == ["Alpha", "Beta"]


def test_unbroken_text_falls_back_to_hard_cut() -> None:
    chunks = chunk_segments([_page("x" * 1200)], chunk_size=500, chunk_overlap=50)
    assert len(chunks) >= 3
    assert all(len(c.text) <= 500 for c in chunks)


def test_split_segment_keeps_page_and_source() -> None:
    page = _page("Some text on page four.", page_number=4, source="/docs/Release_Notes.pdf")
    chunks = split_segment(page, build_splitter())
    assert chunks[0].page_number == 4
    assert chunks[0].source == "/docs/Release_Notes.pdf"


def test_chunk_index_and_total_span_pages() -> None:
    pages = [
        _page("Page one text.", page_number=1),
        _page("   ", page_number=2),
        _page("Page three text.", page_number=3),
    ]
    chunks = chunk_segments(pages)
    assert [c.page_number for c in chunks] == [1, 3]
    assert [c.chunk_index for c in chunks] == [0, 1]
    assert all(c.total_chunks == 2 for c in chunks)


def test_page_metadata_passed_through() -> None:
    page = PageSegment(text="Hello.", page_number=1, source="a.pdf", metadata={"page": 0, "producer": "x"})
    assert chunk_segments([page])[0].metadata == {"page": 0, "producer": "x"}
