import asyncio

import pytest

from docchat.config_manager import ConfigManager
from docchat.document_processor import DocumentProcessor, guess_suffix
from docchat.errors import DocumentFetchError, UnsupportedFileTypeError


@pytest.fixture
def processor(tmp_path):
    config = ConfigManager(tmp_path / "config.json")
    config.update(chunk_size=200, chunk_overlap=50)
    return DocumentProcessor(config)


LONG_TEXT = "\n\n".join(
    f"Paragraph {i}. The committee reviewed item {i} and agreed to revisit it next month."
    for i in range(30)
)


def test_chunks_are_slices_of_the_text(processor):
    chunks = processor.chunk_text(LONG_TEXT)

    assert len(chunks) > 1
    for i, chunk in enumerate(chunks):
        assert chunk["index"] == i
        assert chunk["length"] == len(chunk["text"]) <= 200
        assert LONG_TEXT[chunk["start"]:chunk["start"] + chunk["length"]] == chunk["text"]


def test_chunks_cover_the_whole_text(processor):
    chunks = processor.chunk_text(LONG_TEXT)

    assert chunks[0]["text"].startswith("Paragraph 0.")
    assert chunks[-1]["text"].endswith("Paragraph 29. The committee reviewed item 29 and agreed to revisit it next month.")


def test_short_text_is_one_chunk(processor):
    assert processor.chunk_text("Just one line.") == [
        {"index": 0, "text": "Just one line.", "length": 14, "start": 0}
    ]


@pytest.mark.parametrize("text", ["", "   \n\t  "])
def test_blank_text_has_no_chunks(processor, text):
    assert processor.chunk_text(text) == []


def test_extract_text_from_txt(processor, tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("Første linje\nSecond line", encoding="utf-8")

    assert processor.extract_text(path) == "Første linje\nSecond line"


def test_extract_text_rejects_unknown_suffix(processor, tmp_path):
    path = tmp_path / "image.png"
    path.write_bytes(b"\x89PNG")

    with pytest.raises(UnsupportedFileTypeError):
        processor.extract_text(path)


@pytest.mark.parametrize("url, content_type, expected", [
    ("https://example.com/report.docx", "", ".docx"),
    ("https://example.com/files/42", "text/plain; charset=utf-8", ".txt"),
    ("https://example.com/readme", "text/markdown", ".md"),
    ("https://example.com/download?id=7", "application/octet-stream", ".pdf"),
])
def test_guess_suffix(url, content_type, expected):
    assert guess_suffix(url, content_type) == expected


def test_fetch_text_downloads_plain_text(services):
    text = asyncio.run(services.processor.fetch_text("https://example.com/docs/parking-rules.txt"))

    assert text.startswith("Parking rules.")


def test_fetch_text_reports_http_errors(services):
    with pytest.raises(DocumentFetchError, match="404"):
        asyncio.run(services.processor.fetch_text("https://example.com/missing.pdf"))
