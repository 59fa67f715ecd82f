from __future__ import annotations

from ..models.coverage import ParseSummary
from ..models.language import LanguageCode
from ..models.step_results import TranslationPlanned
from ..models.translation_result import TranslationResults

"""SUMMARY / estimate line rendering.

Format::

    SUMMARY languages=2 rows=14 input_tokens=5120 output_tokens=6033 reasoning_tokens=0 cost_usd=0.0667 output_dir=output
"""


def render_summary_line(results: TranslationResults) -> str:
    return (
        f"SUMMARY languages={len(results.languages)} "
        f"rows={results.total_rows} "
        f"input_tokens={results.input_tokens} "
        f"output_tokens={results.output_tokens} "
        f"reasoning_tokens={results.reasoning_tokens} "
        f"cost_usd={results.total_cost:.4f} "
        f"output_dir={results.output_dir}"
    )


def render_estimate_lines(plan: TranslationPlanned) -> list[str]:
    """One line per language plus a total line."""
    lines = []
    for language in plan.languages:
        est = plan.estimates.get(language)
        if est is None:
            continue
        lines.append(
            f"ESTIMATE language={language.value} rows={est.row_count} batches={len(est.batches)} "
            f"words={est.word_count} tokens={est.token_count} "
            f"price_usd={est.price.total:.4f} (input={est.price.input:.4f} output={est.price.output:.4f}) "
            f"per_word_cents={est.price.per_word_total:.6f}"
        )
    lines.append(f"ESTIMATE total tokens={plan.total_tokens} price_usd={plan.total_price:.4f}")
    return lines


def render_coverage_lines(summary: ParseSummary) -> list[str]:
    """Inspection output: columns found and per-language coverage counts."""
    lines = [
        f"FILE {summary.source_path.name} rows={summary.total_rows} "
        f"source={len(summary.source_rows)} existing_translations={len(summary.existing_rows)}",
        f"  headers={len(summary.headers)}",
        "  attributes=" + ", ".join(
            f"{m.attribute_number}(name={'yes' if m.name_index > -1 else 'no'})"
            for m in summary.attribute_mappings
        ),
        "  meta=" + ", ".join(m.key for m in summary.meta_mappings),
    ]
    for language in LanguageCode:
        missing = summary.missing_count(language)
        done = len(summary.coverage) - missing
        lines.append(f"  {language.value} ({language.display_name}): translated={done} missing={missing}")
    return lines
