import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError

from versetags.app.config import Settings, load_customizations, make_pipeline_config
from versetags.app.errors import ConfigurationError
from versetags.app.utils.pipeline import Pipeline
from versetags.app.utils.reference_index import ReferenceIndex

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )


def build_pipeline(args: argparse.Namespace) -> Pipeline:
    """Settings from the environment, with command-line switches layered on top."""
    try:
        values = Settings().pipeline_config().model_dump()
        if args.language:
            values["language"] = args.language
        if args.prefix:
            values["tag_prefix"] = args.prefix
        if args.include_code:
            values["parse_code_blocks"] = True
        if args.no_titles:
            values["parse_titles"] = False
        if args.expand_books:
            values["expand_whole_books"] = True
        if args.mappings:
            values["customizations"] = load_customizations(args.mappings)
        return Pipeline(make_pipeline_config(**values))
    except ValidationError as exc:
        raise SystemExit(f"Invalid settings: {exc}")
    except ConfigurationError as exc:
        raise SystemExit(f"Invalid configuration: {exc}")


def iter_notes(root: Path) -> Iterable[Path]:
    if root.is_file():
        yield root
        return
    yield from sorted(p for p in root.rglob("*.md") if p.is_file())


def index_notes(pipeline: Pipeline, root: Path) -> Dict[str, List[str]]:
    index: Dict[str, List[str]] = {}
    base = root if root.is_dir() else root.parent
    for path in iter_notes(root):
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping %s: %s", path, exc)
            continue
        name = path.relative_to(base).as_posix()
        tags = pipeline.tags_for_document(text, path.name)
        logger.debug("%s: %s tag(s)", name, len(tags))
        index[name] = tags
    return index


def report_related(pipeline: Pipeline, index: Dict[str, List[str]], note: str) -> None:
    if note not in index:
        raise SystemExit(f"Note '{note}' is not in the index")
    reference_index = ReferenceIndex(pipeline.tag_prefix, pipeline.book_order)
    for name, tags in index.items():
        reference_index.add(name, tags)
    related = reference_index.co_occurrences(note)
    if not related:
        logger.info("No verses co-occur with %s", note)
    for entry in related:
        logger.info("%s cited with %s in %s note(s): %s", entry.tag, note, entry.count, ", ".join(entry.documents))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index Bible references found in a folder of Markdown notes")
    parser.add_argument("path", type=Path, help="Notes directory or a single Markdown file")
    parser.add_argument("--language", help="Reference language (de, en, es, fr, it, pt)")
    parser.add_argument("--prefix", help="Tag prefix, defaults to 'bible/'")
    parser.add_argument("--include-code", action="store_true", help="Also detect references inside code spans")
    parser.add_argument("--no-titles", action="store_true", help="Ignore references in note file names")
    parser.add_argument("--expand-books", action="store_true", help="Tag every verse of whole-book references")
    parser.add_argument("--mappings", type=Path, help="JSON file with per-book alias customizations")
    parser.add_argument("--output", type=Path, help="Write the JSON index here instead of stdout")
    parser.add_argument("--related", help="Log verses co-occurring with this note")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(args.verbose)

    root = args.path.resolve()
    if not root.exists():
        raise SystemExit(f"Path not found: {root}")

    pipeline = build_pipeline(args)
    index = index_notes(pipeline, root)
    total = sum(len(tags) for tags in index.values())
    logger.info("Indexed %s note(s) with %s tag(s).", len(index), total)

    payload = json.dumps(index, ensure_ascii=False, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Wrote index to %s", args.output)
    else:
        sys.stdout.write(payload + "\n")

    if args.related:
        report_related(pipeline, index, args.related)


if __name__ == "__main__":
    main()
