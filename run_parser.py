#!/usr/bin/env python3
"""
CLI script to resolve block attributes for tokenized content.

Reads the JSON output of a block tokenizer (e.g. WordPress parse_blocks()
encoded as JSON), loads block types from block.json files, and prints the
resolved blocks.

Usage:
    python run_parser.py post.json --registry blocks/
    python run_parser.py post.json -r blocks/ -r my-block/block.json --post-id 42 --meta-dir post_meta/
    python run_parser.py post.json -r blocks/ --debug -o resolved.json
"""

import argparse
import json
import sys
from pathlib import Path

# Load .env file automatically
from dotenv import load_dotenv
load_dotenv()

from block_parser.config import get_log_level
from block_parser.exceptions import BlockParserError
from block_parser.logger import setup_logger
from block_parser.main import ContentParser
from block_parser.meta_store import FileMetaStore
from block_parser.registry import BlockRegistry
from block_parser.tokenizer import JSONBlockTokenizer


def build_registry(sources: list[str]) -> BlockRegistry:
    """Load every --registry argument: a directory of block.json files or a single file."""
    registry = BlockRegistry()
    for source in sources:
        path = Path(source)
        if path.is_dir():
            registry.load_directory(path)
        else:
            registry.load_block_json(path)
    return registry


def parse_post_id(value: str):
    # Numeric ids stay numeric so hooks see what WordPress would pass them
    return int(value) if value.isdigit() else value


def main():
    parser = argparse.ArgumentParser(description="Resolve block attributes from tokenized block content")
    parser.add_argument("file", help="JSON file with tokenized blocks")
    parser.add_argument("--registry", "-r", action="append", default=[],
                        help="block.json file or directory of them (repeatable)")
    parser.add_argument("--post-id", "-p", type=parse_post_id, help="Post the content belongs to")
    parser.add_argument("--meta-dir", "-m", help="Directory of per-post metadata JSON files")
    parser.add_argument("--debug", "-d", action="store_true", default=None,
                        help="Include debug payloads (default: BLOCK_PARSER_PARSE_DEBUG)")
    parser.add_argument("--output", "-o", help="Output JSON file")
    args = parser.parse_args()

    # Logs share stdout with the JSON output, so stay quiet unless asked
    setup_logger(level=get_log_level(default="WARNING"))

    try:
        registry = build_registry(args.registry)
        meta_store = FileMetaStore(args.meta_dir) if args.meta_dir else None

        content_parser = ContentParser(
            registry=registry,
            tokenizer=JSONBlockTokenizer(),
            meta_store=meta_store,
            debug=args.debug,
        )

        content = Path(args.file).read_text(encoding="utf-8")
        result = content_parser.parse(content, post_id=args.post_id)

    except BlockParserError as e:
        print(f"✗ {type(e).__name__}: {e.message}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"✗ Cannot read {args.file}: {e}", file=sys.stderr)
        sys.exit(1)

    # ensure_ascii=False preserves unicode characters in the JSON
    output = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
        print(f"Saved to: {args.output}")
    else:
        print(output)


if __name__ == "__main__":
    main()
