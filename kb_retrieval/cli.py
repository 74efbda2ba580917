"""
Knowledge Base Seeding Script

Loads the KB documents, builds the vector store and writes the cache.
Run this once before starting the chatbot, or whenever KB documents change.

RUN:
    seed-kb build "KB/Avatar Knowledge"
    seed-kb query "What is the SVP level?" -k 3
"""

import argparse
import json
import sys

from config.settings import get_settings
from kb_retrieval.cache import VectorStoreCache
from kb_retrieval.exceptions import RetrievalError
from kb_retrieval.loaders import load_knowledge_base
from kb_retrieval.logging_config import configure_logging
from kb_retrieval.retriever import KnowledgeBaseRetriever


def cmd_build(args, settings) -> int:
    print("=" * 50)
    print("Knowledge Base Seeding")
    print("=" * 50)

    kb_dir = args.kb_dir or settings.loader.kb_dir
    if not kb_dir:
        print("No KB directory given. Pass it as an argument or set KB_DIR.")
        return 1

    print("Step 1: Loading KB documents...")
    documents = load_knowledge_base(kb_dir, args.files or settings.loader.file_names)
    if not documents:
        print("No documents found! Make sure KB files are in the correct location.")
        return 1

    print("Step 2: Creating vector store and indexing documents...")
    retriever = KnowledgeBaseRetriever(
        settings=settings,
        cache=VectorStoreCache(args.cache or settings.cache.path),
    )
    try:
        result = retriever.build_index(documents)
    except RetrievalError as e:
        print(f"Error seeding knowledge base: {e}")
        return 1

    print(f"✓ {result.documents} documents -> {result.chunks} chunks")
    print(f"✓ Embedding dimension: {result.dimension}")
    if result.cache_saved:
        print(f"✓ Cache written to {retriever.cache.path}")
    else:
        print(f"! Cache could not be written to {retriever.cache.path}")
    print(f"✓ Indexed in {result.time_seconds:.2f} seconds")
    print("=" * 50)
    return 0


def cmd_query(args, settings) -> int:
    cache = VectorStoreCache(args.cache or settings.cache.path)
    if not cache.exists():
        print(f"No cache at {cache.path}. Run 'seed-kb build' first.")
        return 1

    retriever = KnowledgeBaseRetriever(settings=settings, cache=cache)
    try:
        chunks = retriever.query(args.text, k=args.k)
    except RetrievalError as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        for chunk in chunks:
            print(json.dumps(
                {"content": chunk.content, "metadata": chunk.metadata, "score": chunk.score},
                ensure_ascii=False
            ))
        return 0

    if not chunks:
        print("No relevant chunks found.")
    for i, chunk in enumerate(chunks, 1):
        source = chunk.metadata.get("file_name") or chunk.metadata.get("source") or "Unknown"
        print(f"[{i}] {source} score={chunk.score:.4f}")
        print(chunk.content)
        print("-" * 80)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Index and query the knowledge base")
    p.add_argument("--cache", help="Path of the vector store cache file")
    sub = p.add_subparsers(dest="cmd", required=True)

    pb = sub.add_parser("build", help="Load KB documents and build the index")
    pb.add_argument("kb_dir", nargs="?", help="Knowledge base directory (default: KB_DIR)")
    pb.add_argument("--files", nargs="+", help="Only load these file names")
    pb.set_defaults(func=cmd_build)

    pq = sub.add_parser("query", help="Query the cached index")
    pq.add_argument("text", help="Question to search for")
    pq.add_argument("-k", type=int, default=None, help="Number of chunks to return")
    pq.add_argument("--json", action="store_true", help="Print one JSON object per chunk")
    pq.set_defaults(func=cmd_query)

    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
