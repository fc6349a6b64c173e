import pytest
from stackrag.models import Document, Section
from stackrag.processing import (
    build_document,
    chunk_text,
    extract_sections,
    ingest,
    process_document,
)


def covers(text: str, chunks) -> bool:
    """Chunks appear in order and leave no non-whitespace gap in text."""
    covered = 0
    previous = -1
    for chunk in chunks:
        found = text.find(chunk, max(previous, 0))
        if found < 0 or text[covered:found].strip():
            return False
        previous = found
        covered = max(covered, found + len(chunk))
    return not text[covered:].strip()


def numbered(template: str, count: int, joiner: str = "") -> str:
    return joiner.join(template.format(i) for i in range(count))


class TestSectionExtraction:
    def test_no_headings(self):
        assert extract_sections("just some text\nwith lines") == []

    def test_headings_open_sections(self):
        text = "preamble\n# Intro\nHello.\n## Details\nline one\nline two\n### Deep\n"
        sections = extract_sections(text)
        assert [s.title for s in sections] == ["Intro", "Details", "Deep"]
        assert [s.level for s in sections] == [1, 2, 3]
        assert sections[0].content == "Hello."
        assert sections[1].content == "line one\nline two"
        assert sections[2].content == ""

    def test_seven_hashes_is_not_a_heading(self):
        sections = extract_sections("# Top\n####### not a heading")
        assert len(sections) == 1
        assert sections[0].content == "####### not a heading"

    def test_heading_requires_space(self):
        assert extract_sections("#hashtag\ntext") == []

    def test_title_is_trimmed(self):
        sections = extract_sections("##   Spaced title   \nbody")
        assert sections[0].title == "Spaced title"
        assert sections[0].level == 2


class TestChunkText:
    def test_short_text_is_single_chunk(self):
        assert chunk_text("Hello world.", 1000, 200) == ["Hello world."]

    def test_empty_and_whitespace(self):
        assert chunk_text("", 100, 10) == []
        assert chunk_text("   \n  ", 100, 10) == []

    def test_breaks_at_sentence_end(self):
        text = "A" * 60 + ". " + "B" * 60
        chunks = chunk_text(text, size=100, overlap=10)
        assert chunks[0] == "A" * 60 + "."
        assert chunks[-1].endswith("B" * 60)

    def test_break_point_must_pass_half_window(self):
        text = "AB. " + "C" * 200
        chunks = chunk_text(text, size=100, overlap=0)
        # the only break is in the first half of the window, so the cut is hard
        assert chunks[0] == text[:100]

    def test_breaks_at_space(self):
        words = " ".join(["word"] * 50)
        chunks = chunk_text(words, size=60, overlap=0)
        assert all(set(chunk.split(" ")) == {"word"} for chunk in chunks)

    def test_chunks_respect_size(self):
        text = "Sentence number one. " * 200
        for chunk in chunk_text(text, size=120, overlap=30):
            assert 0 < len(chunk) <= 120

    def test_overlap_larger_than_size_terminates(self):
        text = "x" * 500
        chunks = chunk_text(text, size=50, overlap=80)
        assert chunks
        assert all(chunk for chunk in chunks)

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            chunk_text("text", size=0)
        with pytest.raises(ValueError):
            chunk_text("text", size=10, overlap=-1)

    @pytest.mark.parametrize(
        "text,size,overlap",
        [
            (numbered("Sentence number {}. ", 120), 100, 20),
            (numbered("line {}", 300, "\n"), 64, 16),
            (numbered("{:05d}", 400), 37, 5),
            (numbered("Mixed {} content\nwith spaces and. periods ", 40), 200, 199),
        ],
    )
    def test_chunks_cover_all_content(self, text, size, overlap):
        chunks = chunk_text(text, size, overlap)
        assert chunks
        assert all(chunk.strip() == chunk and chunk for chunk in chunks)
        assert covers(text, chunks)


class TestProcessDocument:
    def test_intro_scenario(self):
        drafts = ingest(
            "Greeting", "# Intro\nHello world. This is a test.", chunk_size=1000
        )
        main = [d for d in drafts if d.metadata.section is None]
        sections = [d for d in drafts if d.metadata.section is not None]
        assert len(main) == 1
        assert len(sections) == 1
        assert sections[0].metadata.section == "Intro"
        assert sections[0].content == "Intro\n\nHello world. This is a test."
        for draft in drafts:
            assert "Hello world. This is a test." in draft.content

    def test_chunk_ids_are_sequential_per_document(self):
        drafts = ingest("Doc", "# A\none\n# B\ntwo", source_url="local://upload/doc.md")
        assert [d.id for d in drafts] == [
            f"local://upload/doc.md-chunk-{i}" for i in range(len(drafts))
        ]
        assert len({d.id for d in drafts}) == len(drafts)

    def test_ids_fall_back_to_title(self):
        drafts = ingest("Untitled notes", "plain text without sections")
        assert drafts[0].id == "Untitled notes-chunk-0"

    def test_metadata_tagging(self):
        drafts = ingest(
            "Doc",
            "# Part\ncontent here",
            source_url="https://example.com/doc",
            source_label="universal-docs",
            namespace="  acme  ",
        )
        for draft in drafts:
            assert draft.metadata.source == "universal-docs"
            assert draft.metadata.title == "Doc"
            assert draft.metadata.url == "https://example.com/doc"
            assert draft.metadata.namespace == "acme"

    def test_blank_namespace_is_none(self):
        drafts = ingest("Doc", "text", namespace="   ")
        assert drafts[0].metadata.namespace is None

    def test_sections_can_be_disabled(self):
        document = build_document("Doc", "# One\nfirst\n# Two\nsecond")
        assert len(document.sections) == 2
        drafts = process_document(document, include_sections=False)
        assert all(d.metadata.section is None for d in drafts)

    def test_empty_section_produces_no_chunks(self):
        document = Document(
            title="Doc",
            content="body",
            sections=[Section(title="Empty", content="", level=1)],
        )
        drafts = process_document(document)
        assert len(drafts) == 1

    def test_build_document_normalizes(self):
        document = build_document("Doc", "# Head\r\nexa-\nmple")
        assert document.content == "# Head\nexample"
        assert document.sections[0].content == "example"
