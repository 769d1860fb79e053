"""Rendering for recommend/compare/list/stats output, as rich panels or JSON."""

import json
from typing import Any, Dict, List, Optional

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from whichmodel.catalog.listing import (
    MODALITY_LABELS,
    CatalogStats,
    ModelListItem,
    format_context,
    format_price,
    price_unit,
)
from whichmodel.domain import Modality
from whichmodel.domain.models import ModelEntry, Recommendation, RecommendationMeta
from whichmodel.pricing import summarize_pricing
from whichmodel.recommender.compare import CompareResult, ModelAssessment
from whichmodel.ui_styles import (
    TABLE_BORDER_STYLE,
    TABLE_HEADER_STYLE,
    TABLE_NUM_STYLE,
    TIER_STYLES,
)


def to_json_output(
    task: str, recommendation: Recommendation, meta: RecommendationMeta
) -> Dict[str, Any]:
    """The ``--json`` document: task, analysis, picks, alternatives and meta."""
    rec = recommendation.model_dump(mode="json", by_alias=True)
    return {
        "task": task,
        "taskAnalysis": rec["taskAnalysis"],
        "recommendations": rec["recommendations"],
        "alternativesInOtherModalities": rec["alternativesInOtherModalities"],
        "meta": meta.model_dump(mode="json", by_alias=True),
    }


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def render_recommendation(
    console: Console,
    recommendation: Recommendation,
    meta: RecommendationMeta,
    verbose: bool = False,
    catalog_latency_ms: Optional[int] = None,
    total_latency_ms: Optional[int] = None,
) -> None:
    analysis = recommendation.task_analysis
    lines: List[Any] = [
        Text.from_markup("[cyan]🔍 Task Analysis[/cyan]"),
        Text.from_markup(f"   Modality: [bold]{analysis.detected_modality.value.upper()}[/bold]"),
        Text(f"   {analysis.summary}"),
        Text(f"   {analysis.modality_reasoning}", style="dim"),
    ]

    for tier, pick in recommendation.recommendations.items():
        icon, label, color = TIER_STYLES[tier.value]
        lines.append(Text(""))
        lines.append(
            Text.from_markup(f"{icon} [{color}]{label}[/{color}] - [bold]{escape(pick.id)}[/bold]")
        )
        lines.append(Text(f"   {pick.pricing_summary}", style="dim"))
        lines.append(Text(f"   {pick.reason}"))
        lines.append(Text(f"   Est. {pick.estimated_cost}", style="dim"))

    if recommendation.alternatives_in_other_modalities:
        lines.append(Text(""))
        lines.append(Text(f"💡 Tip: {recommendation.alternatives_in_other_modalities}"))

    lines.append(Text(""))
    cost_line = f"⚡ This recommendation cost ${meta.recommendation_cost_usd:.4f} ({meta.recommender_model})"
    if meta.used_fallback:
        cost_line += " [fallback]"
    lines.append(Text(cost_line, style="dim"))

    if verbose:
        prompt = meta.prompt_tokens if meta.prompt_tokens is not None else "n/a"
        completion = meta.completion_tokens if meta.completion_tokens is not None else "n/a"
        lines.append(Text(f"Tokens: prompt={prompt}, completion={completion}", style="dim"))

        timing = []
        if catalog_latency_ms is not None:
            timing.append(f"catalog={catalog_latency_ms}ms")
        timing.append(f"recommend={meta.recommendation_latency_ms}ms")
        if total_latency_ms is not None:
            timing.append(f"total={total_latency_ms}ms")
        lines.append(Text(f"Timing: {', '.join(timing)}", style="dim"))

    console.print(Panel(Group(*lines), title="Recommendations", border_style="cyan", expand=False))


def render_model_list(
    console: Console,
    items: List[ModelListItem],
    total: int,
    sort: str,
    limit: int,
    modality: Optional[Modality] = None,
) -> None:
    subject = f"{modality.value} models" if modality else "models"
    if limit < total:
        console.print(f"[dim]{total} {subject} (showing top {limit}, sorted by {sort})[/dim]")
    else:
        console.print(f"[dim]{total} {subject} (sorted by {sort})[/dim]")

    if not items:
        console.print("[dim]No models found.[/dim]")
        return

    table = Table(
        show_header=True,
        header_style=TABLE_HEADER_STYLE,
        border_style=TABLE_BORDER_STYLE,
        expand=False,
    )
    table.add_column("ID", overflow="ellipsis")
    table.add_column("Name", overflow="ellipsis")
    table.add_column("Pricing", justify="right", no_wrap=True)
    table.add_column("Context", justify="right", style=TABLE_NUM_STYLE)
    table.add_column("Source", no_wrap=True)

    for item in items:
        table.add_row(
            escape(item.id),
            escape(item.name),
            item.pricing,
            format_context(item.context),
            item.source,
        )

    console.print(table)


def render_stats(console: Console, stats: CatalogStats) -> None:
    plural = "" if len(stats.sources) == 1 else "s"
    console.print(
        f"Catalog: [bold]{stats.total_models}[/bold] models from "
        f"[bold]{len(stats.sources)}[/bold] source{plural}"
    )
    console.print()

    table = Table(
        show_header=True,
        header_style=TABLE_HEADER_STYLE,
        border_style=TABLE_BORDER_STYLE,
        expand=False,
    )
    table.add_column("Modality")
    table.add_column("Count", justify="right", style=TABLE_NUM_STYLE)
    table.add_column("Price Range")

    for key, modality_stats in stats.by_modality.items():
        modality = Modality(key)
        price_range = modality_stats.price_range
        if price_range.min is None:
            range_text = "N/A"
        elif price_range.min == price_range.max:
            range_text = f"{format_price(price_range.min)} {price_unit(modality)}"
        else:
            range_text = (
                f"{format_price(price_range.min)} - {format_price(price_range.max)} "
                f"{price_unit(modality)}"
            )
        table.add_row(MODALITY_LABELS[modality], str(modality_stats.count), range_text)

    console.print(table)
    console.print()
    console.print(f"Configured sources: [green]{', '.join(stats.configured_sources)}[/green]")

    if stats.missing_sources:
        console.print("Missing sources (set API key to enable):")
        for missing in stats.missing_sources:
            console.print(f"  {missing.name:<12} {missing.env_var:<22} [dim]{missing.get_url}[/dim]")


def _assessment_lines(label: str, color: str, model: ModelEntry, assessment: ModelAssessment) -> List[Any]:
    lines: List[Any] = [
        Text.from_markup(f"[{color}]Model {label}:[/{color}] [bold]{escape(model.name)}[/bold]"),
        Text(f"   ID: {model.id}", style="dim"),
        Text(f"   Pricing: {summarize_pricing(model.pricing)}", style="dim"),
        Text(f"   Est. {assessment.estimated_cost}", style="dim"),
    ]
    if assessment.strengths:
        lines.append(Text("   Strengths:", style="green"))
        lines.extend(Text(f"     • {s}") for s in assessment.strengths)
    if assessment.weaknesses:
        lines.append(Text("   Weaknesses:", style="red"))
        lines.extend(Text(f"     • {w}") for w in assessment.weaknesses)
    if assessment.suited_for:
        lines.append(Text(f"   Suited for: {', '.join(assessment.suited_for)}", style="dim"))
    return lines


def render_comparison(
    console: Console,
    task: str,
    result: CompareResult,
    model_a: ModelEntry,
    model_b: ModelEntry,
) -> None:
    if result.winner == "A":
        headline = Text(f"Winner: {model_a.name}", style="bold green")
    elif result.winner == "B":
        headline = Text(f"Winner: {model_b.name}", style="bold green")
    else:
        headline = Text("Result: It's a tie!", style="bold yellow")

    lines: List[Any] = [
        Text("Model Comparison", style="bold"),
        Text(f"Task: {task}", style="dim"),
        Text(""),
        headline,
        Text(result.reasoning, style="dim"),
        Text(""),
    ]
    lines.extend(_assessment_lines("A", "cyan", model_a, result.model_a))
    lines.append(Text(""))
    lines.extend(_assessment_lines("B", "magenta", model_b, result.model_b))

    console.print(Panel(Group(*lines), title="Compare", border_style="yellow", expand=False))
