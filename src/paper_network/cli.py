"""CLI entry point for Paper-Network."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from paper_network.analysis.communities import cluster_sizes
from paper_network.analysis.ranking import top_ranked
from paper_network.config import get_config, load_config
from paper_network.errors import CacheConfigMissing, PaperNetworkError
from paper_network.identifiers import classify
from paper_network.models import NetworkNode, PaperRecord
from paper_network.service import NetworkService
from paper_network.source import PaperSource
from paper_network.utils import truncate_text

app = typer.Typer(
    name="paper-network",
    help="Explore the citation network around an academic paper.",
    no_args_is_help=True,
)


def _setup(config_file: Path | None, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if config_file:
        load_config(config_file)


def format_record(paper: PaperRecord) -> str:
    """Format a resolved paper for display."""
    lines = [f"📄 {paper.title}"]

    if paper.authors:
        authors_str = ", ".join(paper.authors[:5])
        if len(paper.authors) > 5:
            authors_str += f" et al. ({len(paper.authors)} authors)"
        lines.append(f"   Authors: {authors_str}")

    meta = []
    if paper.year:
        meta.append(str(paper.year))
    if paper.venue:
        meta.append(paper.venue)
    if meta:
        lines.append(f"   {' | '.join(meta)}")

    lines.append(f"   ID: {paper.id} ({paper.source})")
    if paper.doi:
        lines.append(f"   DOI: {paper.doi}")
    if paper.url:
        lines.append(f"   URL: {paper.url}")
    if paper.pdf_url:
        lines.append(f"   PDF: {paper.pdf_url}")

    lines.append(f"   Citations: {paper.citation_count}")
    lines.append(f"   References listed: {len(paper.references)}, citing papers listed: {len(paper.citations)}")

    if paper.abstract:
        lines.append(f"   Abstract: {truncate_text(paper.abstract, 300)}")

    return "\n".join(lines)


def format_node(rank_no: int, node: NetworkNode) -> str:
    """Format one ranked node for display."""
    marker = "*" if node.is_root else " "
    year = node.year or "----"
    flags = " (unresolved)" if node.degraded else ""
    return (
        f"{rank_no:>3}.{marker} {node.page_rank_score:.4f}  c{node.cluster_id:<3} d{node.depth}  "
        f"{year}  {truncate_text(node.title, 70)}{flags}"
    )


@app.command()
def network(
    paper_id: Annotated[str, typer.Argument(help="DOI, arXiv id, OpenAlex work id or Semantic Scholar id")],
    depth: Annotated[int, typer.Option("--depth", "-d", help="Traversal depth")] = 1,
    max_nodes: Annotated[int, typer.Option("--max-nodes", "-n", help="Node budget")] = 200,
    top: Annotated[int, typer.Option("--top", "-t", help="Number of ranked papers to show")] = 15,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file")
    ] = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output the full response as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Build the citation network around a paper."""
    _setup(config_file, verbose)

    async def _network() -> None:
        try:
            service = NetworkService()
        except CacheConfigMissing as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e

        async with service:
            response = await service.fetch_network(
                {"paper_id": paper_id, "depth": depth, "max_nodes": max_nodes}
            )

        if output_json:
            typer.echo(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
            if not response.ok:
                raise typer.Exit(1)
            return

        if response.error is not None:
            typer.echo(f"Error [{response.error.code}]: {response.error.message}", err=True)
            raise typer.Exit(1)

        result = response.data
        if response.warning:
            typer.echo(f"Warning: {response.warning}", err=True)

        source = "cache" if response.cached else "fresh build"
        typer.echo(
            f"\nNetwork for {paper_id} ({source}): "
            f"{len(result.nodes)} nodes, {len(result.edges)} edges, "
            f"{len(cluster_sizes(result.nodes))} clusters\n"
        )
        for i, node in enumerate(top_ranked(result.nodes, top), 1):
            typer.echo(format_node(i, node))

    asyncio.run(_network())


@app.command()
def resolve(
    identifier: Annotated[str, typer.Argument(help="DOI, arXiv id, OpenAlex work id or Semantic Scholar id")],
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file")
    ] = None,
    output_json: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Resolve a single paper with its reference and citation lists."""
    _setup(config_file, verbose)

    async def _resolve() -> None:
        async with PaperSource() as source:
            try:
                paper = await source.resolve(identifier)
            except PaperNetworkError as e:
                typer.echo(f"Could not resolve {identifier}: {e}", err=True)
                raise typer.Exit(1) from e

        if output_json:
            typer.echo(json.dumps(paper.model_dump(by_alias=True, mode="json"), indent=2, ensure_ascii=False))
        else:
            typer.echo(format_record(paper))

    asyncio.run(_resolve())


@app.command(name="classify")
def classify_cmd(
    identifier: Annotated[str, typer.Argument(help="Identifier to classify")],
) -> None:
    """Show how an identifier would be looked up."""
    try:
        classified = classify(identifier)
    except PaperNetworkError as e:
        typer.echo(f"Invalid identifier: {e}", err=True)
        raise typer.Exit(1) from e

    typer.echo(f"Kind: {classified.kind.value}")
    typer.echo(f"Value: {classified.value}")
    typer.echo(f"Lookup: {classified.lookup_id}")


@app.command(name="config")
def config_show(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config file")
    ] = None,
) -> None:
    """Show current configuration."""
    if config_file:
        load_config(config_file)

    cfg = get_config()

    typer.echo("Current configuration:")
    typer.echo(f"  User-Agent: {cfg.user_agent}")
    typer.echo(f"  Request timeout: {cfg.request_timeout}s")
    typer.echo(f"  Max attempts: {cfg.retry.max_attempts} (base delay {cfg.retry.base_delay}s)")
    typer.echo(f"  Resolution interval: {cfg.resolution_interval}s")
    typer.echo(f"  Defaults: depth={cfg.default_depth}, max_nodes={cfg.default_max_nodes}")
    typer.echo(f"  Semantic Scholar API key: {'configured' if cfg.semantic_scholar_api_key else 'not set'}")
    typer.echo(f"  Cache backend: {cfg.cache.backend} (ttl {cfg.cache.ttl_hours}h)")
    if cfg.cache.backend == "supabase":
        typer.echo(f"  Supabase URL: {cfg.cache.supabase_url or 'not set'}")
        typer.echo(f"  Supabase key: {'configured' if cfg.cache.supabase_service_role_key else 'not set'}")
    if cfg.proxy:
        typer.echo(f"  Proxy HTTP: {cfg.proxy.http or 'not set'}")
        typer.echo(f"  Proxy HTTPS: {cfg.proxy.https or 'not set'}")


if __name__ == "__main__":
    app()
