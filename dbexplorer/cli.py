"""
`dbexplorer` command-line interface.

Commands
--------
dbexplorer extract-model  --project DIR --database FILE   -- extract + save a new model
dbexplorer enrich-model   --project DIR                   -- LLM descriptions for everything
dbexplorer enrich-model   --project DIR table --schema S --name N [--show]
dbexplorer data-dictionary --project DIR table --source-path "dict/*.yaml" [--schema S] [--name N]
dbexplorer show-object    --project DIR view --schema S --name N
dbexplorer export-model   --project DIR [--file-type markdown] [--split-files]

Every command except ``extract-model`` loads the model from
``<project>/<model_dir>``; commands that change it save it back.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from tqdm import tqdm

from .cli_display import print_error, print_header, setup_logger, token_tracker
from .config import Config
from .llm.base import LLMError
from .models.entities import EntityKind
from .models.errors import SemanticModelError
from .models.semantic_model import SemanticModel

logger = logging.getLogger(__name__)

_OBJECT_TYPES = list(EntityKind.ALL)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _model_dir(args: argparse.Namespace, config: Config) -> str:
    return config.model_directory(os.path.abspath(args.project))


def _load(args: argparse.Namespace, config: Config) -> SemanticModel:
    from .persistence.model_store import load_model
    model = load_model(
        _model_dir(args, config),
        strict=config.STRICT_LOAD,
        reject_duplicates=config.REJECT_DUPLICATES,
    )
    for missing in model.unavailable:
        print(f"  warning: [{missing.schema}].[{missing.name}] unavailable "
              f"({missing.reason})", file=sys.stderr)
    return model


def _save(model: SemanticModel, args: argparse.Namespace, config: Config) -> None:
    from .persistence.model_store import save_model
    directory = _model_dir(args, config)
    save_model(model, directory)
    print(f"Saved semantic model '{model.name}' to {directory}")


def _find(model: SemanticModel, object_type: str, schema: str, name: str):
    if object_type == EntityKind.TABLE:
        return model.find_table(schema, name)
    if object_type == EntityKind.VIEW:
        return model.find_view(schema, name)
    return model.find_stored_procedure(schema, name)


def _show(model: SemanticModel, object_type: str, schema: str, name: str) -> bool:
    entity = _find(model, object_type, schema, name)
    if entity is None:
        print_error(f"{object_type} [{schema}].[{name}] not found")
        return False
    print(entity.display())
    return True


def _make_llm(config: Config):
    from .llm.openai_client import OpenAIClient
    return OpenAIClient(
        base_url=config.LLM_BASE_URL,
        model=config.LLM_MODEL,
        api_key=config.LLM_API_KEY,
        temperature=config.LLM_TEMPERATURE,
        max_retries=config.LLM_MAX_RETRIES,
        retry_delay=config.LLM_RETRY_DELAY,
    )


def _require_target(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    if args.object_type and not (args.schema and args.name):
        parser.error(f"{args.object_type} requires --schema and --name")


# ---------------------------------------------------------------------------
# Sub-command handlers
# ---------------------------------------------------------------------------

def _cmd_extract(args: argparse.Namespace, config: Config) -> None:
    """Extract a model from a SQLite database and save it."""
    from .extract.sqlite import SqliteExtractor
    extractor = SqliteExtractor(args.database, model_name=args.model_name)
    print(f"Extracting semantic model from {extractor.source}")
    model = extractor.extract(
        skip_tables=args.skip_tables,
        skip_views=args.skip_views,
        skip_stored_procedures=args.skip_stored_procedures,
    )
    print(f"  Tables: {len(model.tables)}\n"
          f"  Views:  {len(model.views)}\n"
          f"  Stored procedures: {len(model.stored_procedures)}")
    _save(model, args, config)


def _cmd_enrich(args: argparse.Namespace, config: Config) -> None:
    """Enrich the whole model, or one object, with LLM descriptions."""
    from .enrichment.enricher import DescriptionEnricher
    model = _load(args, config)

    if args.object_type:
        enricher = DescriptionEnricher(_make_llm(config))
        enrich_one = {
            EntityKind.TABLE: enricher.enrich_table,
            EntityKind.VIEW: enricher.enrich_view,
            EntityKind.STORED_PROCEDURE: enricher.enrich_stored_procedure,
        }[args.object_type]
        if not enrich_one(model, args.schema, args.name):
            print_error(f"{args.object_type} [{args.schema}].[{args.name}] not found")
            sys.exit(1)
        if args.show:
            _show(model, args.object_type, args.schema, args.name)
    else:
        pbar = tqdm(total=None, unit="object", desc="Enriching")

        def _progress(current: int, total: int, label: str) -> None:
            if pbar.total != total:
                pbar.total = total
                pbar.refresh()
            pbar.set_postfix_str(label, refresh=False)
            pbar.update(1)

        enricher = DescriptionEnricher(
            _make_llm(config),
            skip_tables=args.skip_tables,
            skip_views=args.skip_views,
            skip_stored_procedures=args.skip_stored_procedures,
            progress_callback=_progress,
        )
        try:
            count = enricher.enrich_model(model)
        finally:
            pbar.close()
        print(f"Enriched {count} object(s); {token_tracker.summary()}")

    _save(model, args, config)


def _cmd_data_dictionary(args: argparse.Namespace, config: Config) -> None:
    """Merge data dictionary files into the model's tables."""
    from .enrichment.data_dictionary import apply_data_dictionary
    source_dir = os.path.dirname(args.source_path) or "."
    if not os.path.isdir(source_dir):
        print_error(f"Data dictionary source path does not exist: {source_dir}")
        sys.exit(1)

    model = _load(args, config)
    updated = apply_data_dictionary(model, args.source_path, args.schema, args.name)
    print(f"Updated {len(updated)} table(s) from data dictionary")
    if args.show and args.schema and args.name:
        _show(model, EntityKind.TABLE, args.schema, args.name)
    _save(model, args, config)


def _cmd_show(args: argparse.Namespace, config: Config) -> None:
    """Print one object of the model."""
    model = _load(args, config)
    if not _show(model, args.object_type, args.schema, args.name):
        sys.exit(1)


def _cmd_export(args: argparse.Namespace, config: Config) -> None:
    """Export the model with a registered strategy."""
    from .export import ExportOptions
    from .export.registry import default_registry, export_model

    registry = default_registry()
    registry.discover(config.EXPORT_STRATEGIES)
    file_type = args.file_type or config.EXPORT_FORMAT
    # Fail on an unknown format before loading anything.
    registry.get(file_type)

    model = _load(args, config)
    options = ExportOptions(
        output_path=args.output_path or os.path.abspath(args.project),
        output_file_name=args.output_file_name,
        split_files=args.split_files,
    )
    files = export_model(model, file_type, options, registry)
    print_header(f"Exported '{model.name}' as {file_type}")
    for path in files:
        print(f"  {path}")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _add_project(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project", "-p", required=True,
                   help="Project directory holding the semantic model folder")


def _add_skip_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--skip-tables", action="store_true", help="Skip tables")
    p.add_argument("--skip-views", action="store_true", help="Skip views")
    p.add_argument("--skip-stored-procedures", action="store_true",
                   help="Skip stored procedures")


def _add_target(p: argparse.ArgumentParser, required: bool = False) -> None:
    p.add_argument("--schema", "-s", required=required, help="Schema of the object")
    p.add_argument("--name", "-n", required=required, help="Name of the object")


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="dbexplorer",
        description="Extract, enrich and export a semantic model of a database",
    )
    parser.add_argument("--config", default=None,
                        help="Path to .dbexplorer.yaml config file")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # --- extract-model ---
    extract_p = subparsers.add_parser(
        "extract-model", help="Extract a semantic model from a SQLite database")
    _add_project(extract_p)
    extract_p.add_argument("--database", "-d", required=True,
                           help="Path to the SQLite database file")
    extract_p.add_argument("--model-name", default=None,
                           help="Model name (default: database file name)")
    _add_skip_flags(extract_p)
    extract_p.set_defaults(func=_cmd_extract)

    # --- enrich-model ---
    enrich_p = subparsers.add_parser(
        "enrich-model", help="Generate descriptions with the configured LLM")
    _add_project(enrich_p)
    enrich_p.add_argument("object_type", nargs="?", choices=_OBJECT_TYPES,
                          help="Enrich only one object of this type")
    _add_target(enrich_p)
    _add_skip_flags(enrich_p)
    enrich_p.add_argument("--show", action="store_true",
                          help="Display the object after enrichment")
    enrich_p.set_defaults(func=_cmd_enrich, parser=enrich_p)

    # --- data-dictionary ---
    dd_p = subparsers.add_parser(
        "data-dictionary", help="Apply data dictionary files to the model")
    _add_project(dd_p)
    dd_p.add_argument("object_type", choices=[EntityKind.TABLE],
                      help="Object type the dictionary describes")
    dd_p.add_argument("--source-path", "-d", required=True,
                      help="Glob matching data dictionary files")
    _add_target(dd_p)
    dd_p.add_argument("--show", action="store_true",
                      help="Display the table after processing (needs --schema/--name)")
    dd_p.set_defaults(func=_cmd_data_dictionary)

    # --- show-object ---
    show_p = subparsers.add_parser("show-object", help="Display one object")
    _add_project(show_p)
    show_p.add_argument("object_type", choices=_OBJECT_TYPES)
    _add_target(show_p, required=True)
    show_p.set_defaults(func=_cmd_show)

    # --- export-model ---
    export_p = subparsers.add_parser("export-model", help="Export the model")
    _add_project(export_p)
    export_p.add_argument("--file-type", "-f", default=None,
                          help="Export format (default: from config, 'markdown')")
    export_p.add_argument("--output-path", default=None,
                          help="Output directory (default: the project directory)")
    export_p.add_argument("--output-file-name", "-o", default=None,
                          help="File name for a combined export")
    export_p.add_argument("--split-files", action="store_true",
                          help="Write one file per object")
    export_p.set_defaults(func=_cmd_export)

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the `dbexplorer` console script."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "parser", None) is not None:
        _require_target(args.parser, args)

    config = Config.load(args.config, project_path=args.project)
    setup_logger(config.LOG_DIR)

    try:
        args.func(args, config)
    except (SemanticModelError, LLMError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print_error(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
