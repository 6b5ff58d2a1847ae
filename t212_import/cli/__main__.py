from __future__ import annotations

import argparse
import csv
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from t212_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from t212_import.logging.error_log import ErrorLogBuffer
from t212_import.logging.init import log_summary, set_debug, setup_logging
from t212_import.models.config_models import ImportConfig
from t212_import.parsing.errors import AggregationError, EmptyInputError, ImportParseError
from t212_import.services.aggregator import (
    ProcessingError,
    parse_multiple_files,
    scan_csv_files,
    validate_yearly_structure,
)
from t212_import.services.batch_parser import parse_file, validate_format
from t212_import.services.export import transactions_to_frame, write_transactions
from t212_import.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, resolve and load the config (defaults when no config file)
- Collect export files from the given paths (directories are scanned for *.csv)
- Validate the yearly naming convention, parse every file, merge
- Optionally export the transaction stream, print the SUMMARY line

Exit codes: 0 success, 2 partial failure (a file was skipped), 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "T212_IMPORT_CONFIG"


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv (existing environment wins by default)."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _resolve_config(explicit: str | None) -> ImportConfig:
    """Pick the config file: --config, then $T212_IMPORT_CONFIG, then the default path.

    An explicitly requested file must exist; a missing default file means
    built-in defaults.
    """
    requested = explicit or os.getenv(CONFIG_ENV_VAR)
    if requested:
        return load_config(Path(requested))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ImportConfig()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="T212 CSV export importer")
    p.add_argument("paths", nargs="*", help="Export files or directories (default: current directory)")
    p.add_argument("--config", help=f"Config file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--delimiter", help="CSV delimiter (overrides config)")
    p.add_argument("--output", help="Write the transaction stream to a .csv or .json file")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--validate-only", action="store_true", help="Validate file names and headers, then exit")
    p.add_argument("--inspect-data", action="store_true", help="Print format version & first transactions then exit")
    return p.parse_args(argv)


def _collect_files(paths: list[str]) -> list[Path]:
    if not paths:
        return scan_csv_files(Path("."))
    files: list[Path] = []
    for raw in paths:
        p = Path(raw)
        if p.is_dir():
            files.extend(scan_csv_files(p))
        else:
            files.append(p)
    return files


def _validate_files(files: list[Path], cfg: ImportConfig, delimiter: str) -> int:
    logger = setup_logging()
    logger.info(f"Validating {len(files)} CSV files")
    if cfg.csv.validate_yearly_structure:
        try:
            validate_yearly_structure(files)
        except AggregationError as e:
            logger.error(f"yearly structure validation failed: {e}")
            return EXIT_FATAL
        logger.info("yearly structure validation passed")

    all_valid = True
    for f in files:
        try:
            version = validate_format(f, delimiter=delimiter, encoding=cfg.csv.encoding)
        except (ImportParseError, OSError, ValueError, csv.Error) as e:
            logger.error(f"{f.name}: {e}")
            all_valid = False
            continue
        logger.info(f"{f.name}: valid format ({int(version)} columns)")
    return EXIT_SUCCESS_ALL if all_valid else EXIT_FATAL


def _inspect_data(files: list[Path], cfg: ImportConfig, delimiter: str) -> int:
    for f in files:
        print(f"FILE: {f.name}")
        try:
            result = parse_file(f, delimiter=delimiter, encoding=cfg.csv.encoding)
        except (ImportParseError, OSError, ValueError, csv.Error) as e:
            print(f"  read_error: {e}")
            continue
        stat = result.file_stats[0] if result.file_stats else None
        version = stat.format_version if stat else None
        print(f"  columns={version} transactions={len(result.transactions)} failed_rows={result.failed_rows}")
        df = transactions_to_frame(result.transactions[:3])
        print(df[["action", "time", "ticker", "total", "currency_total"]].to_string(index=False))
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug()
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    delimiter = args.delimiter if args.delimiter is not None else cfg.csv.delimiter
    # --delimiter bypasses the config schema check
    if len(delimiter) != 1:
        logger.error(f"delimiter must be a single character, got {delimiter!r}")
        return EXIT_FATAL
    try:
        files = _collect_files(args.paths)
    except ProcessingError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL
    if not files:
        logger.error("no CSV files found")
        return EXIT_FATAL

    if args.validate_only:
        return _validate_files(files, cfg, delimiter)
    if args.inspect_data:
        return _inspect_data(files, cfg, delimiter)

    logger.info(f"Processing {len(files)} file(s)")
    error_log = ErrorLogBuffer(cfg.error_log.directory) if cfg.error_log.enabled else None
    try:
        result = parse_multiple_files(
            files,
            delimiter=delimiter,
            encoding=cfg.csv.encoding,
            validate_names=cfg.csv.validate_yearly_structure,
            max_workers=cfg.processing.max_workers,
            error_log=error_log,
            max_errors_displayed=cfg.csv.max_errors_displayed,
            options=cfg.processing.to_options(),
        )
    except AggregationError as e:
        logger.error(f"yearly validation failed: {e}")
        return EXIT_FATAL
    except EmptyInputError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL
    finally:
        if error_log is not None:
            log_path = error_log.flush()
            if log_path is not None:
                logger.info(f"error log written to {log_path}")

    if args.output:
        try:
            out = write_transactions(result.transactions, Path(args.output))
        except (ValueError, OSError) as e:
            logger.error(f"export: {e}")
            return EXIT_FATAL
        logger.info(f"wrote {len(result.transactions)} transactions to {out}")

    summary_line = render_summary_line(result, len(files))
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.skipped_files:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
