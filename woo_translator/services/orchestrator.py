from __future__ import annotations

import json
import logging
import re
from collections import deque
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any

from ..config.loader import AppConfig, MissingConfiguration
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.attribute import AttributeName, AttributeNameAccumulator
from ..models.coverage import ParseSummary, Row
from ..models.language import LanguageCode
from ..models.step_results import (
    ColumnsSelected,
    ResultsReported,
    SourceLoaded,
    TranslationCompleted,
    TranslationConfirmed,
    TranslationPlanned,
)
from ..models.translation_result import (
    EstimateResult,
    EstimatedPrice,
    LanguageTranslationResult,
    TranslationResults,
)
from ..models.wpml import WPML_INTERNAL_COLUMNS
from ..schema.dynamic_schema import build_row_schema, validate_first_row
from ..table.reader import read_product_table
from ..table.writer import build_output_path, write_translated_table
from .bridge import DecodeFailed, batch_fields, decode_batch, encode_batch, extract_code, iter_batches
from .generation import (
    GeminiGenerationService,
    GenerationRequest,
    TextGenerationService,
    TokenUsage,
)
from .mapper import map_attribute_columns, map_meta_columns
from .postprocess import postprocess_rows
from .pricing import estimate_price, usage_cost
from .progress import LanguageProgressIndicator, ProgressTracker
from .prompts import attribute_names_prompt, product_prompt, product_system_prompt
from .reconciler import compute_coverage, partition, plan_languages
from .summary import render_summary_line
from .wizard import StepContext, Wizard, WizardStep

"""Translation pipeline: the concrete wizard steps.

    csv-path -> columns-selection -> target-languages -> confirm -> translate -> results

Each step reads the user's choices from the wizard values and the typed
payload of its predecessor, and returns the payload for the next step.
Failures are appended to the error log (one ErrorRecord per failure) and then
re-raised so the wizard marks the step as ``error``.

Values used by the steps:

    csv_path            path of the WooCommerce export
    meta_columns        selected "Meta: ..." columns (None -> SEO defaults present in the file)
    target_languages    languages to produce
    override_languages  languages to re-translate even where a translation exists
    confirmed           the user accepted the estimate
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SelectionError",
    "BatchFailed",
    "LanguageJob",
    "LanguageJobQueue",
    "TranslationPipeline",
    "STEP_IDS",
    "initial_values",
]

STEP_IDS = (
    "csv-path",
    "columns-selection",
    "target-languages",
    "confirm",
    "translate",
    "results",
)


class SelectionError(Exception):
    """Invalid user selection (unknown column, unconfirmed estimate ...)."""


class BatchFailed(Exception):
    """A single translation request failed; carries where it happened."""

    def __init__(self, language: LanguageCode, batch: int, cause: Exception) -> None:
        self.language = language
        self.batch = batch
        self.cause = cause
        where = f"batch {batch + 1}" if batch >= 0 else "attribute names"
        super().__init__(f"{language.value} {where}: {cause}")


def initial_values() -> dict[str, Any]:
    return {
        "csv_path": "",
        "meta_columns": None,
        "target_languages": [],
        "override_languages": [],
        "confirmed": False,
    }


def _error_type(exc: BaseException) -> str:
    """CamelCase exception name -> UPPER_SNAKE error type."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(exc).__name__).upper()


@dataclass(frozen=True)
class LanguageJob:
    language: LanguageCode
    rows: list[Row]
    estimate: EstimateResult | None = None


class LanguageJobQueue:
    """FIFO of per-language jobs processed by a single worker coroutine.

    Languages run strictly one after another.
    """

    def __init__(self, jobs: Sequence[LanguageJob] = ()) -> None:
        self._pending: deque[LanguageJob] = deque(jobs)

    def put(self, job: LanguageJob) -> None:
        self._pending.append(job)

    def __len__(self) -> int:
        return len(self._pending)

    async def run(
        self, worker: Callable[[LanguageJob], Awaitable[LanguageTranslationResult]]
    ) -> list[LanguageTranslationResult]:
        results: list[LanguageTranslationResult] = []
        while self._pending:
            job = self._pending.popleft()
            results.append(await worker(job))
        return results


Handler = Callable[[StepContext], Awaitable[Any]]


class TranslationPipeline:
    """Builds the wizard and implements its step handlers."""

    def __init__(
        self,
        config: AppConfig,
        *,
        service: TextGenerationService | None = None,
        error_log: ErrorLogBuffer | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.error_log = error_log if error_log is not None else ErrorLogBuffer()
        self._service = service
        self._clock = clock
        # language -> result of the plan it was produced for; lets a resubmitted
        # translate step skip languages that already finished
        self._completed: dict[LanguageCode, tuple[TranslationPlanned, LanguageTranslationResult]] = {}

    # ---- wiring ------------------------------------------------------
    def build_wizard(self, values: dict[str, Any] | None = None) -> Wizard:
        start = initial_values()
        if values:
            start.update(values)
        steps = [
            WizardStep("csv-path", "CSV file", self._recorded("csv-path", self.load_source)),
            WizardStep(
                "columns-selection",
                "Columns to translate",
                self._recorded("columns-selection", self.select_columns),
                expects=SourceLoaded,
            ),
            WizardStep(
                "target-languages",
                "Target languages",
                self._recorded("target-languages", self.plan_and_estimate),
                expects=ColumnsSelected,
            ),
            WizardStep(
                "confirm",
                "Token and price confirmation",
                self._recorded("confirm", self.confirm),
                expects=TranslationPlanned,
            ),
            WizardStep(
                "translate",
                "Translate",
                self._recorded("translate", self.translate),
                expects=TranslationConfirmed,
            ),
            WizardStep(
                "results",
                "Results",
                self._recorded("results", self.report),
                expects=TranslationCompleted,
            ),
        ]
        return Wizard(steps, start)

    def _recorded(self, step_id: str, handler: Handler) -> Handler:
        @wraps(handler)
        async def run(ctx: StepContext) -> Any:
            try:
                return await handler(ctx)
            except BatchFailed as e:
                self.error_log.append(
                    ErrorRecord.create(
                        step_id,
                        _error_type(e.cause),
                        str(e.cause),
                        language=e.language.value,
                        batch=e.batch,
                    )
                )
                raise
            except Exception as e:
                self.error_log.append(ErrorRecord.create(step_id, _error_type(e), str(e)))
                raise

        return run

    @property
    def service(self) -> TextGenerationService:
        if self._service is None:
            self._service = GeminiGenerationService(
                self.config.require_api_key(), max_attempts=self.config.max_retries
            )
        return self._service

    # ---- step 1 ------------------------------------------------------
    async def load_source(self, ctx: StepContext) -> SourceLoaded:
        raw_path = str(ctx.values.get("csv_path") or "").strip()
        if not raw_path:
            raise MissingConfiguration("no CSV file selected")
        table = read_product_table(Path(raw_path).expanduser())

        schema = build_row_schema(table.headers)
        validate_first_row(schema, table.rows)

        parts = partition(table.rows)
        summary = ParseSummary(
            source_path=table.path,
            headers=table.headers,
            attribute_mappings=map_attribute_columns(table.headers),
            meta_mappings=map_meta_columns(table.headers),
            source_rows=parts.source_rows,
            existing_rows=parts.existing_rows,
            coverage=compute_coverage(parts.source_rows, parts.existing_rows),
        )
        logger.info(
            f"Loaded {len(table.rows)} rows from {table.path.name}: "
            f"source={len(parts.source_rows)} existing_translations={len(parts.existing_rows)} "
            f"ignored={parts.ignored} attributes={len(summary.attribute_mappings)}"
        )
        return SourceLoaded(summary=summary)

    # ---- step 2 ------------------------------------------------------
    async def select_columns(self, ctx: StepContext) -> ColumnsSelected:
        summary: ParseSummary = ctx.previous.summary
        available = [m.key for m in summary.meta_mappings if m.key not in WPML_INTERNAL_COLUMNS]

        requested = ctx.values.get("meta_columns")
        if requested is None:
            chosen = [c for c in self.config.default_meta_columns if c in available]
        else:
            unknown = [c for c in requested if c not in available]
            if unknown:
                raise SelectionError(f"unknown or non-translatable meta column(s): {', '.join(unknown)}")
            chosen = list(dict.fromkeys(requested))

        fixed = tuple(c for c in self.config.fixed_columns if c in summary.headers)
        logger.info(f"Columns: fixed={list(fixed)} meta={chosen}")
        return ColumnsSelected(summary=summary, fixed_columns=fixed, meta_columns=tuple(chosen))

    # ---- step 3 ------------------------------------------------------
    async def plan_and_estimate(self, ctx: StepContext) -> TranslationPlanned:
        selection: ColumnsSelected = ctx.previous
        languages = tuple(dict.fromkeys(ctx.values.get("target_languages") or ()))
        if not languages:
            raise MissingConfiguration("no target languages selected")
        overrides = tuple(dict.fromkeys(ctx.values.get("override_languages") or ()))
        ignored = [lang.value for lang in overrides if lang not in languages]
        if ignored:
            logger.warning(f"override ignored for languages that are not targets: {', '.join(ignored)}")
        overrides = tuple(lang for lang in overrides if lang in languages)

        summary = selection.summary
        rows_by_language, names = plan_languages(
            summary.coverage,
            languages,
            overrides,
            selection.fixed_columns,
            selection.meta_columns,
            summary.attribute_mappings,
            summary.headers,
        )

        estimates: dict[LanguageCode, EstimateResult] = {}
        for language in languages:
            estimates[language] = await self._estimate(language, rows_by_language[language])
            est = estimates[language]
            logger.info(
                f"Estimate {language.value}: rows={est.row_count} tokens={est.token_count} "
                f"price_usd={est.price.total:.4f}"
            )

        return TranslationPlanned(
            selection=selection,
            languages=languages,
            override_languages=overrides,
            rows_by_language=rows_by_language,
            attribute_names=names,
            estimates=estimates,
        )

    async def _estimate(self, language: LanguageCode, rows: list[Row]) -> EstimateResult:
        system_prompt = product_system_prompt(language)
        if not rows:
            return EstimateResult(
                language=language,
                row_count=0,
                word_count=0,
                token_count=0,
                price=EstimatedPrice(),
                system_prompt=system_prompt,
            )

        batch_size = self.config.batch_size
        batches = tuple(encode_batch(chunk, batch_size) for _, chunk in iter_batches(rows, batch_size))
        model = self.config.counting_model_id
        system_tokens = await self.service.count_tokens(model, system_prompt)
        token_count = system_tokens * len(batches)
        word_count = 0
        for encoded in batches:
            prompt = product_prompt(encoded)
            token_count += await self.service.count_tokens(model, prompt)
            word_count += len((system_prompt + prompt).split())

        return EstimateResult(
            language=language,
            row_count=len(rows),
            word_count=word_count,
            token_count=token_count,
            price=estimate_price(self.config.model_id, token_count, word_count),
            system_prompt=system_prompt,
            batches=batches,
        )

    # ---- step 4 ------------------------------------------------------
    async def confirm(self, ctx: StepContext) -> TranslationConfirmed:
        plan: TranslationPlanned = ctx.previous
        if not ctx.values.get("confirmed"):
            raise SelectionError(
                f"translation not confirmed (estimated {plan.total_tokens} tokens, "
                f"${plan.total_price:.4f})"
            )
        return TranslationConfirmed(plan=plan)

    # ---- step 5 ------------------------------------------------------
    async def translate(self, ctx: StepContext) -> TranslationCompleted:
        plan: TranslationPlanned = ctx.previous.plan
        batch_size = self.config.batch_size
        queue = LanguageJobQueue(
            LanguageJob(language, plan.rows_by_language[language], plan.estimates.get(language))
            for language in plan.languages
        )
        total_batches = sum(
            -(-len(plan.rows_by_language[lang]) // batch_size) for lang in plan.languages
        )
        indicator = LanguageProgressIndicator(len(plan.languages))

        with ProgressTracker(total_batches) as progress:

            async def worker(job: LanguageJob) -> LanguageTranslationResult:
                cached = self._completed.get(job.language)
                if cached is not None and cached[0] is plan:
                    logger.info(f"{job.language.value}: already translated in this run, skipped")
                    return cached[1]
                indicator.start_language(job.language, len(job.rows))
                result = await self._translate_language(plan, job, progress)
                indicator.finish_language(True, len(result.rows))
                self._completed[job.language] = (plan, result)
                return result

            results = await queue.run(worker)

        return TranslationCompleted(
            plan=plan,
            results=TranslationResults(output_dir=self.config.output_dir, languages=results),
        )

    async def _translate_language(
        self, plan: TranslationPlanned, job: LanguageJob, progress: ProgressTracker
    ) -> LanguageTranslationResult:
        language = job.language
        if not job.rows:
            logger.info(f"{language.value}: nothing to translate")
            return LanguageTranslationResult(language=language, output_path=None, rows=[])

        names, name_usage = await self._translate_attribute_names(language, plan.attribute_names)
        cost = usage_cost(
            self.config.attribute_model_id,
            name_usage.input_tokens,
            name_usage.output_tokens,
            name_usage.reasoning_tokens,
        )

        batch_size = self.config.batch_size
        system_prompt = product_system_prompt(language)
        translated: list[Row] = []
        usage = TokenUsage()
        for index, chunk in iter_batches(job.rows, batch_size):
            progress.start_batch(language, index)
            request = GenerationRequest(
                prompt=product_prompt(encode_batch(chunk, batch_size)),
                model_id=self.config.model_id,
                system_instructions=system_prompt,
            )
            try:
                response = await self.service.generate(request)
                rows = decode_batch_for(chunk, batch_size, response.text)
            except MissingConfiguration:
                raise
            except Exception as e:
                progress.finish_batch(success=False)
                raise BatchFailed(language, index, e) from e
            translated.extend(rows)
            usage = usage + response.usage
            cost += usage_cost(
                self.config.model_id,
                response.usage.input_tokens,
                response.usage.output_tokens,
                response.usage.reasoning_tokens,
            )
            progress.finish_batch()
            progress.set_postfix(cost=f"{cost:.4f}")

        summary = plan.selection.summary
        processed = postprocess_rows(summary.source_rows, translated, names, language)
        if processed.unmatched_ids:
            unmatched = ", ".join(i or "''" for i in processed.unmatched_ids)
            self.error_log.append(
                ErrorRecord.create(
                    "translate",
                    "UNMATCHED_ID",
                    f"translated rows without source row: {unmatched}",
                    language=language.value,
                )
            )

        path = build_output_path(summary.source_path, language, self.config.output_dir, self._clock())
        write_translated_table(processed.rows, summary.headers, path)
        logger.info(f"{language.value}: wrote {len(processed.rows)} rows to {path}")

        return LanguageTranslationResult(
            language=language,
            output_path=path,
            rows=processed.rows,
            input_tokens=usage.input_tokens + name_usage.input_tokens,
            output_tokens=usage.output_tokens + name_usage.output_tokens,
            reasoning_tokens=usage.reasoning_tokens + name_usage.reasoning_tokens,
            cost=cost,
        )

    async def _translate_attribute_names(
        self, language: LanguageCode, names: AttributeNameAccumulator
    ) -> tuple[AttributeNameAccumulator, TokenUsage]:
        if not len(names):
            return names, TokenUsage()
        request = GenerationRequest(
            prompt=attribute_names_prompt(language, names.names),
            model_id=self.config.attribute_model_id,
        )
        try:
            response = await self.service.generate(request)
            translated = parse_attribute_names(response.text)
        except Exception as e:
            raise BatchFailed(language, -1, e) from e
        logger.debug(f"{language.value}: translated {len(translated)} attribute name(s)")
        return names.with_translations(translated), response.usage

    # ---- step 6 ------------------------------------------------------
    async def report(self, ctx: StepContext) -> ResultsReported:
        results: TranslationResults = ctx.previous.results
        for r in results.languages:
            if r.output_path is not None:
                logger.info(f"{r.language.value}: {len(r.rows)} rows -> {r.output_path} (${r.cost:.4f})")
        return ResultsReported(results=results, summary_line=render_summary_line(results))


def decode_batch_for(chunk: Sequence[Row], batch_size: int, text: str) -> list[Row]:
    """Decode a reply and check it echoes the request's fields and row count."""
    return decode_batch(text, expected_fields=batch_fields(chunk, batch_size), expected_rows=len(chunk))


def parse_attribute_names(text: str) -> list[AttributeName]:
    """Parse the JSON array returned for attribute-name translation.

    Raises:
        DecodeFailed: if the reply is not a JSON array of {name, slug, translatedName}
    """
    try:
        data = json.loads(extract_code(text))
    except json.JSONDecodeError as e:
        raise DecodeFailed(f"attribute names reply is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise DecodeFailed("attribute names reply is not a JSON array")
    names: list[AttributeName] = []
    for item in data:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise DecodeFailed(f"invalid attribute name entry: {item!r}")
        translated = item.get("translatedName")
        if translated is not None and not isinstance(translated, str):
            raise DecodeFailed(f"invalid translatedName for {item['name']!r}")
        names.append(
            AttributeName(name=item["name"], slug=str(item.get("slug") or ""), translated_name=translated)
        )
    return names
