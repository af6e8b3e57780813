"""
Command line access to stored annotations.
"""
import argparse
import json
import logging
import os
import sys
from itertools import groupby
from pathlib import Path
from typing import List, Optional

from marginalia.config import Settings
from marginalia.core.annotations import (
    AnnotationPersistence,
    AnnotationRecord,
    JsonFileStorage,
    RecordStore,
)
from marginalia.core.document import DocumentInfo, open_document
from marginalia.ui.sidebar import CommentCard

logger = logging.getLogger("marginalia")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="marginalia",
        description="Inspect the annotations stored for a PDF document."
    )
    parser.add_argument('--data-dir', type=Path, default=None,
                        help="Directory holding annotation files (default: app data directory)")
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help="Increase log verbosity")

    commands = parser.add_subparsers(dest='command', required=True)

    list_parser = commands.add_parser('list', help="List annotations grouped by page")
    list_parser.add_argument('pdf', type=Path)

    export_parser = commands.add_parser('export', help="Write stored annotations as JSON")
    export_parser.add_argument('pdf', type=Path)
    export_parser.add_argument('output', type=Path)

    return parser.parse_args(argv)


def load_records(info: DocumentInfo, settings: Settings) -> List[AnnotationRecord]:
    """Read and validate the records stored for a document."""
    persistence = AnnotationPersistence(JsonFileStorage(settings.data_dir), info.storage_key)
    store = RecordStore(creator_name=settings.user_name)
    return store.init(persistence.load())


def format_records(records: List[AnnotationRecord], page_count: int) -> str:
    lines = []
    ordered = sorted(records, key=lambda record: record.page_index)
    for page_index, page_records in groupby(ordered, key=lambda record: record.page_index):
        lines.append(f"Page {page_index + 1}/{page_count}")
        for record in page_records:
            card = CommentCard.from_record(record)
            header = f"  [{card.mode.value}] {card.title or '(empty)'}"
            meta = " ".join(part for part in (card.author, card.time_label) if part)
            if meta:
                header += f"  ({meta})"
            lines.append(header)
            for comment in card.comments:
                lines.append(f"    - {comment.value} ({comment.creator.name})")
    if not lines:
        lines.append("No annotations.")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    settings = Settings()
    if args.data_dir is not None:
        settings.data_dir = args.data_dir

    if not os.path.isfile(args.pdf):
        print(f"File not found: {args.pdf}", file=sys.stderr)
        return 1
    try:
        info = open_document(args.pdf)
    except RuntimeError as e:
        print(f"Cannot open {args.pdf}: {e}", file=sys.stderr)
        return 1

    logger.debug("Reading annotations for %s from %s", info.path, settings.data_dir)
    records = load_records(info, settings)

    if args.command == 'list':
        print(format_records(records, info.page_count))
    elif args.command == 'export':
        data = [record.to_dict() for record in records]
        args.output.write_text(json.dumps(data, indent=2), encoding='utf-8')
        print(f"Exported {len(data)} annotation(s) to {args.output}")
    return 0
