from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

from woo_translator.config.loader import DEFAULT_CONFIG_PATH, AppConfig, ConfigError, load_config
from woo_translator.logging.init import enable_debug, log_summary, setup_logging
from woo_translator.models.language import LanguageCode, parse_languages
from woo_translator.models.step_results import ResultsReported, SourceLoaded, TranslationPlanned
from woo_translator.services.orchestrator import TranslationPipeline
from woo_translator.services.summary import render_coverage_lines, render_estimate_lines
from woo_translator.services.wizard import SubmitOutcome, Wizard

"""CLI entrypoint.

Drives the translation wizard non-interactively:

    csv-path -> columns-selection -> target-languages -> confirm -> translate -> results

- ``--inspect`` stops after loading the file and prints the coverage matrix
- ``--estimate-only`` stops after the token/price estimate
- otherwise the estimate is confirmed automatically with ``--yes``, or by
  asking on a terminal

Exit codes:
    0  every requested language was written
    1  a step failed (config, CSV, API, decode ...); see logs/errors-*.log
    2  files were written but some rows could not be matched to a source row
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets the .env value of GOOGLE_GENERATIVE_AI_API_KEY win over
    an exported one. A broken file only produces a warning.
    """
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="woo-translate",
        description="WooCommerce product CSV -> per-language WPML import files",
    )
    p.add_argument("--csv", required=True, help="WooCommerce product export (CSV)")
    p.add_argument(
        "--languages",
        default="",
        help="Comma separated target languages, e.g. de,fr,hr (required unless --inspect)",
    )
    p.add_argument(
        "--override",
        default="",
        help="Comma separated languages to re-translate even where a translation exists",
    )
    p.add_argument(
        "--meta",
        action="append",
        default=None,
        metavar="COLUMN",
        help='Meta column to translate, e.g. "Meta: rank_math_title" (repeatable; default: SEO columns)',
    )
    p.add_argument("--no-meta", action="store_true", help="Translate no meta columns")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Config file (YAML)")
    p.add_argument("--yes", "-y", action="store_true", help="Accept the estimate without asking")
    p.add_argument("--estimate-only", action="store_true", help="Print the token/price estimate then exit")
    p.add_argument("--inspect", action="store_true", help="Print columns and translation coverage then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _ask_confirmation(plan: TranslationPlanned) -> bool:
    if not sys.stdin.isatty():
        return False
    answer = input(f"Translate for an estimated ${plan.total_price:.4f}? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


async def _submit(wizard: Wizard, logger) -> bool:
    step = wizard.focused_step
    outcome = await wizard.submit_focused_step()
    if outcome is SubmitOutcome.SUCCESS:
        return True
    state = wizard.get_step_state(wizard.index_of(step.id))
    logger.error(f"{step.id}: {state.error or outcome.value}")
    return False


async def _run(wizard: Wizard, pipeline: TranslationPipeline, args: argparse.Namespace, logger) -> int:
    if not await _submit(wizard, logger):
        return EXIT_FATAL
    if args.inspect:
        loaded: SourceLoaded = wizard.get_step_state(0).data
        for line in render_coverage_lines(loaded.summary):
            print(line)
        return EXIT_SUCCESS_ALL

    for _ in ("columns-selection", "target-languages"):
        if not await _submit(wizard, logger):
            return EXIT_FATAL

    plan: TranslationPlanned = wizard.get_step_state(wizard.index_of("target-languages")).data
    for line in render_estimate_lines(plan):
        logger.info(line)
    if args.estimate_only:
        return EXIT_SUCCESS_ALL

    if not args.yes:
        wizard.set_value("confirmed", _ask_confirmation(plan))
    for _ in ("confirm", "translate", "results"):
        if not await _submit(wizard, logger):
            return EXIT_FATAL

    reported: ResultsReported = wizard.get_step_state(wizard.index_of("results")).data
    # log_summary adds the "SUMMARY " label itself
    log_summary(reported.summary_line[len("SUMMARY "):])
    if len(pipeline.error_log):
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up pytest's own argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()

    try:
        cfg: AppConfig = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        languages: list[LanguageCode] = parse_languages(args.languages) if args.languages else []
        overrides: list[LanguageCode] = parse_languages(args.override) if args.override else []
    except ValueError as e:
        logger.error(f"arguments: {e}")
        return EXIT_FATAL
    if not languages and not args.inspect:
        logger.error("arguments: --languages is required")
        return EXIT_FATAL

    meta_columns = [] if args.no_meta else args.meta
    pipeline = TranslationPipeline(cfg)
    wizard = pipeline.build_wizard(
        {
            "csv_path": args.csv,
            "meta_columns": meta_columns,
            "target_languages": languages,
            "override_languages": overrides,
            "confirmed": bool(args.yes),
        }
    )
    logger.info(f"Translating {args.csv} into: {', '.join(lang.value for lang in languages) or '-'}")

    try:
        code = asyncio.run(_run(wizard, pipeline, args, logger))
    finally:
        path = pipeline.error_log.flush()
        if path is not None:
            logger.info(f"error log written: {path}")
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
