# src/cli/runner.py

"""Headless CLI commands on top of the tracking service."""

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.price_history_point import PriceHistoryPoint
from src.models.product_fact import ProductFact
from src.models.results import ActionResult, ResultStatus, ScoredFact
from src.models.search_candidate import SearchCandidate
from src.models.tracked_product import TrackedProduct
from src.services.collaborators import StaticIdentity
from src.services.price_check_sweep import PriceCheckSweep
from src.services.tracking_service import TrackingService

logger = logging.getLogger("pricewatch.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def build_service(
    user_id: str | None = None,
    strategy_id: str | None = None,
) -> TrackingService:
    """Tracking service wired to the default collaborators."""
    settings = Settings()
    if strategy_id:
        settings.DISCOVERY_STRATEGY = strategy_id
    return TrackingService(
        settings,
        identity=StaticIdentity(user_id, settings=settings),
    )


def _exit_code(result: ActionResult) -> int:
    """0 on success, 1 for everything else (message on stderr)."""
    if result.success:
        return 0
    colour = "yellow" if result.status is ResultStatus.NOT_FOUND else "red"
    _err.print(f"[{colour}]{result.message or result.status.value}[/{colour}]")
    if result.status is ResultStatus.NOT_AUTHENTICATED:
        _err.print("[dim]Pass --user or set PRICEWATCH_USER_ID.[/dim]")
    return 1


def _emit_json(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


# ── Serialisers ──────────────────────────────────────────

def _fact_to_dict(fact: ProductFact) -> dict[str, object]:
    return {
        "name": fact.name,
        "price": fact.current_price,
        "currency": fact.currency_code,
        "original_price": fact.original_price,
        "discount_percent": fact.discount_percent,
        "rating": fact.rating,
        "review_count": fact.review_count,
        "seller": fact.seller_name,
        "seller_rating": fact.seller_rating,
        "platform": fact.platform_domain,
        "image": fact.image_url,
        "url": fact.source_url,
    }


def _scored_to_dict(scored: ScoredFact) -> dict[str, object]:
    data = _fact_to_dict(scored.fact)
    data["deal_score"] = scored.deal_score.score
    data["deal_label"] = scored.deal_score.label.value
    return data


def _tracked_to_dict(product: TrackedProduct) -> dict[str, object]:
    return {
        "id": product.id,
        "name": product.name,
        "price": product.current_price,
        "currency": product.currency,
        "original_price": product.original_price,
        "deal_score": product.deal_score,
        "platform": product.platform_domain,
        "url": product.url,
        "updated_at": product.updated_at.isoformat(),
    }


def _point_to_dict(point: PriceHistoryPoint) -> dict[str, object]:
    return {
        "price": point.price,
        "currency": point.currency,
        "observed_at": point.observed_at.isoformat(),
    }


def _candidate_to_dict(candidate: SearchCandidate) -> dict[str, object]:
    return {
        "platform": candidate.platform,
        "platform_name": candidate.platform_name,
        "title": candidate.title,
        "url": candidate.url,
        "is_search_page": candidate.is_search_page,
    }


# ── Tables ───────────────────────────────────────────────

def _print_scored_table(title: str, listings: list[ScoredFact]) -> None:
    """Render scored listings with their deal labels."""
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Product", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Deal", justify="center")
    table.add_column("Rating", justify="center")
    table.add_column("Platform", style="magenta")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, scored in enumerate(listings, 1):
        fact, deal = scored.fact, scored.deal_score
        rating = (
            f"{fact.rating:.1f} ({fact.review_count:,})"
            if fact.rating is not None
            else "—"
        )
        table.add_row(
            str(idx),
            fact.name[:50],
            f"{fact.currency_code} {fact.current_price:,.2f}",
            f"[{deal.color}]{deal.emoji} {deal.score:.1f}[/{deal.color}]",
            rating,
            fact.platform_name or fact.platform_domain,
            fact.source_url,
        )
    Console().print(table)


def _print_tracked_table(products: list[TrackedProduct]) -> None:
    table = Table(
        title="Tracked Products", show_lines=True, title_style="bold cyan",
    )
    table.add_column("ID", style="dim", width=5)
    table.add_column("Product", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Deal", justify="right")
    table.add_column("Platform", style="magenta")
    table.add_column("Updated", style="dim")
    for p in products:
        table.add_row(
            str(p.id),
            p.name[:50],
            f"{p.currency} {p.current_price:,.2f}",
            f"{p.deal_score:.1f}" if p.deal_score is not None else "—",
            p.platform_domain,
            f"{p.updated_at:%Y-%m-%d %H:%M}",
        )
    Console().print(table)


# ── Commands ─────────────────────────────────────────────

def run_preview(
    service: TrackingService, url: str, output_format: str,
) -> int:
    """Extract and score a product without saving it."""
    _err.print(f"[bold]Extracting:[/bold] {url}")
    result = service.preview_product(url)
    if not result.success:
        return _exit_code(result)
    scored: ScoredFact = result.payload
    if output_format == "table":
        _print_scored_table("Product Preview", [scored])
        _err.print(f"[dim]{scored.deal_score.format_breakdown()}[/dim]")
        _err.print(scored.deal_score.recommendation)
    else:
        _emit_json(_scored_to_dict(scored))
    return 0


def run_track(
    service: TrackingService, url: str, output_format: str,
) -> int:
    """Start tracking a product (or refresh an already tracked one)."""
    result = service.track_product(url)
    if not result.success:
        return _exit_code(result)
    _err.print(f"[green]✓ {result.message}[/green]")
    if output_format == "table":
        _print_tracked_table([result.payload])
    else:
        _emit_json(_tracked_to_dict(result.payload))
    return 0


async def run_compare(
    service: TrackingService, url: str, output_format: str,
) -> int:
    """Compare a product across other platforms."""
    _err.print(f"[bold]Comparing:[/bold] {url}")
    result = await service.compare_product(url)
    if not result.success:
        return _exit_code(result)

    comparison = result.payload
    for error_msg in comparison.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")
    parts = [f"{comparison.discovered_count} candidates"]
    if comparison.failed_count:
        parts.append(f"{comparison.failed_count} dropped")
    if comparison.deduplicated_count:
        parts.append(f"{comparison.deduplicated_count} deduped")
    _err.print(
        f"[green]✓ {len(comparison.alternatives)} alternatives"
        f" ({', '.join(parts)})[/green]"
    )
    if not comparison.alternatives:
        _err.print(f"[yellow]{comparison.message}[/yellow]")

    if output_format == "table":
        _print_scored_table("Original", [comparison.original])
        if comparison.alternatives:
            _print_scored_table("Alternatives", comparison.alternatives)
    else:
        _emit_json({
            "original": _scored_to_dict(comparison.original),
            "alternatives": [
                _scored_to_dict(a) for a in comparison.alternatives
            ],
        })
    return 0


def run_search(
    service: TrackingService, name: str, output_format: str,
) -> int:
    """List candidate listings for a free-text product name."""
    result = service.search_products(name)
    if not result.success:
        return _exit_code(result)
    candidates: list[SearchCandidate] = result.payload
    if not candidates:
        _err.print(f"[yellow]{result.message}[/yellow]")
        return 1
    if output_format == "table":
        table = Table(
            title=f"Listings for '{name}'",
            show_lines=True,
            title_style="bold cyan",
        )
        table.add_column("#", style="dim", width=4)
        table.add_column("Platform", style="magenta")
        table.add_column("Title", max_width=60)
        table.add_column("URL", overflow="fold", style="dim")
        for idx, c in enumerate(candidates, 1):
            table.add_row(
                str(idx), c.platform_name or c.platform, c.title, c.url,
            )
        Console().print(table)
    else:
        _emit_json([_candidate_to_dict(c) for c in candidates])
    return 0


def run_list(service: TrackingService, output_format: str) -> int:
    result = service.list_products()
    if not result.success:
        return _exit_code(result)
    products: list[TrackedProduct] = result.payload
    if not products:
        _err.print("[yellow]No tracked products.[/yellow]")
    if output_format == "table":
        if products:
            _print_tracked_table(products)
    else:
        _emit_json([_tracked_to_dict(p) for p in products])
    return 0


def run_history(
    service: TrackingService, product_id: int, output_format: str,
) -> int:
    """Show stored price points and a min/max/avg summary."""
    result = service.get_price_history(product_id)
    if not result.success:
        return _exit_code(result)
    product: TrackedProduct = result.payload["product"]
    history: list[PriceHistoryPoint] = result.payload["history"]
    summary = result.payload["summary"]

    if output_format == "table":
        table = Table(
            title=f"Price History: {product.name[:50]}",
            title_style="bold cyan",
        )
        table.add_column("Observed", style="dim")
        table.add_column("Price", justify="right", style="green")
        for point in history:
            table.add_row(
                f"{point.observed_at:%Y-%m-%d %H:%M}",
                f"{point.currency} {point.price:,.2f}",
            )
        Console().print(table)
        if summary:
            _err.print(
                f"[dim]min {summary['min']:,.2f} · max {summary['max']:,.2f}"
                f" · avg {summary['avg']:,.2f} · {summary['count']} points"
                "[/dim]"
            )
    else:
        _emit_json({
            "product": _tracked_to_dict(product),
            "history": [_point_to_dict(p) for p in history],
            "summary": summary,
        })
    return 0


def run_delete(service: TrackingService, product_id: int) -> int:
    result = service.delete_product(product_id)
    if not result.success:
        return _exit_code(result)
    _err.print(f"[green]✓ {result.message}[/green]")
    return 0


def run_verdict(service: TrackingService, product_id: int) -> int:
    """Print the AI buy/wait verdict for a tracked product."""
    _err.print("[bold]Asking for a verdict...[/bold]")
    result = service.get_verdict(product_id)
    if not result.success:
        return _exit_code(result)
    Console().print(result.payload)
    return 0


def run_sweep(token: str | None) -> int:
    """Re-check every tracked product (scheduled entry point)."""
    authorization = f"Bearer {token}" if token else None
    sweep = PriceCheckSweep()
    result = sweep.run(authorization)
    if not result.authorized:
        _err.print("[red]Unauthorized sweep request.[/red]")
        return 1
    _emit_json({
        "total": result.total,
        "updated": result.updated,
        "failed": result.failed,
        "price_changes": result.price_changes,
        "alerts_sent": result.alerts_sent,
        "duration_seconds": result.duration_seconds,
    })
    return 0
