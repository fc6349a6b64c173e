#!/usr/bin/env python3
"""
Basic StackRAG Usage Example

This example runs the whole retrieval pipeline offline: documents are
chunked, embedded with the deterministic mock provider, stored in memory and
queried. Set OPENAI_API_KEY and drop ``mock_mode=True`` to use a live model.
"""

from stackrag import RAGService, Settings, configure_logging


def main():
    settings = Settings(mock_mode=True, embedding_dimension=256, chunk_size=400)
    configure_logging("WARNING")
    service = RAGService(settings)

    print(f"Store: {service.store.name} ({service.store.id})")
    print(f"Mock mode: {service.gateway.is_mock}")

    # Load the bundled sample documentation
    stats = service.ingest_samples()
    print(f"\nLoaded samples: {stats.successful_chunks}/{stats.total_chunks} chunks")

    # Upload a couple of files into a namespace
    files = [
        (
            "handbook.md",
            b"# Vacation\nEmployees get 25 days of paid vacation per year.\n\n"
            b"# Remote work\nRemote work is allowed up to three days a week.",
        ),
        (
            "office.html",
            b"<h1>Office</h1><p>The office opens at 8am and closes at 6pm.</p>",
        ),
    ]
    stats = service.ingest_files(files, namespace="acme")
    print(f"Uploaded {stats.files_processed} files -> {stats.status}")
    for preview in stats.extraction_previews:
        print(f"  {preview.file}: {preview.preview[:60]!r}")

    # Inspect the store
    print(f"\nTotal chunks: {service.count()}  (acme: {service.count('acme')})")
    for preview in service.preview(namespace="acme", limit=3):
        print(f"  {preview.id}: {preview.content_preview}")

    # Ask questions; uploaded content is preferred over the samples
    for question in ["How many vacation days do I get?", "When does the office open?"]:
        result = service.answer(question, namespace="acme")
        print(f"\nQ: {question}")
        print(f"A: {result.answer_text}")
        print(f"   status={result.status} chunks={result.retrieved_chunk_count}")
        for source in result.sources:
            section = f" / {source.section}" if source.section else ""
            print(f"   - {source.title}{section} ({source.relevance_score:.3f})")

    # Remove the namespace again
    removed = service.clear("acme")
    print(f"\nCleared acme namespace: {removed} chunks removed")
    print(f"Remaining chunks: {service.count()}")

    service.close()


if __name__ == "__main__":
    main()
