"""CLI entrypoint for fetching, summarizing and questioning papers."""

from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import load_settings
from .exceptions import PaperPlainError, UnreadablePdfError
from .pipeline import PaperPlainPipeline
from .prompts import SUMMARY_STYLES
from .semantic_scholar_client import SemanticScholarClient

if TYPE_CHECKING:
    from .models import Paper, QaExchange, RelatedPaper

def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dotenv", type=Path, default=None, help="Path to .env file")
    parser.add_argument(
        "--json", action="store_true", default=False, help="Print JSON instead of rich output"
    )


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--arxiv", help="ArXiv URL or id, e.g. 2301.00234")
    source.add_argument("--doi", help="DOI, doi.org URL or 'DOI: ...' label")
    source.add_argument("--pmid", help="PubMed id or PubMed URL")
    source.add_argument("--s2", help="Semantic Scholar paper id (or ARXIV:/DOI: id)")
    source.add_argument("--query", help="Free-text or Google Scholar URL search")
    source.add_argument("--pdf", type=Path, help="Local PDF file to extract")
    parser.add_argument(
        "--style",
        choices=sorted(SUMMARY_STYLES),
        default=None,
        help="Summary style (default: SUMMARY_DEFAULT_STYLE or simple)",
    )
    parser.add_argument("--model", type=str, default=None, help="Override LLM_MODEL")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="paperplain",
        description="Explain academic papers in plain English",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    summarize = subparsers.add_parser("summarize", help="Fetch a paper and summarize it")
    _add_source_arguments(summarize)
    _add_common_arguments(summarize)

    ask = subparsers.add_parser("ask", help="Ask a question about a paper")
    ask.add_argument("question", help="Question to answer from the paper text")
    _add_source_arguments(ask)
    _add_common_arguments(ask)
    ask.add_argument(
        "--no-summary",
        action="store_true",
        default=False,
        help="Answer from the abstract only, skipping the summary call",
    )

    related = subparsers.add_parser(
        "related", help="List citations, references or related papers"
    )
    related.add_argument("paper_id", help="Semantic Scholar id, ArXiv id, DOI or PMID")
    related.add_argument(
        "--kind",
        choices=["citations", "references", "related"],
        default="related",
    )
    related.add_argument("--limit", type=int, default=10)
    _add_common_arguments(related)

    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=False, show_path=False)],
    )


def _fetch_paper(pipeline: PaperPlainPipeline, args: argparse.Namespace) -> Paper:
    if args.pdf is not None:
        try:
            content = args.pdf.read_bytes()
        except OSError as exc:
            raise UnreadablePdfError(f"Could not open {args.pdf}: {exc}") from exc
        return pipeline.pdf_extractor.extract(content)
    if args.arxiv:
        return pipeline.fetch_arxiv(args.arxiv)
    if args.doi:
        return pipeline.fetch_doi(args.doi)
    if args.pmid:
        return pipeline.fetch_pmid(args.pmid)
    if args.s2:
        return pipeline.fetch_semantic_scholar(args.s2)
    return pipeline.fetch_query(args.query)


def _render_paper(console: Console, paper: Paper) -> None:
    header = f"[bold]{escape(paper.title)}[/bold]\n{escape(paper.authors)}"
    details = [
        str(value)
        for value in (paper.journal, paper.year, paper.source_id, paper.pdf_url)
        if value
    ]
    if details:
        header += "\n[dim]" + escape(" | ".join(details)) + "[/dim]"
    console.print(Panel(header, title=paper.source_type.value, border_style="blue"))
    if paper.summary:
        console.print(Markdown(paper.summary))
    elif paper.abstract:
        console.print(paper.abstract)


def _render_exchange(console: Console, exchange: QaExchange) -> None:
    console.print(Panel(Markdown(exchange.answer), title=exchange.question))
    if not exchange.sources:
        return
    table = Table(title="Supporting text")
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Snippet")
    for source in exchange.sources:
        table.add_row(source.label, source.text)
    console.print(table)


def _render_related(console: Console, papers: list[RelatedPaper], kind: str) -> None:
    table = Table(title=kind.capitalize())
    table.add_column("Year", justify="right")
    table.add_column("Title")
    table.add_column("Citations", justify="right")
    for paper in papers:
        table.add_row(str(paper.year or ""), paper.title, str(paper.citation_count))
    console.print(table)


def run(args: argparse.Namespace, console: Console) -> None:
    if args.command == "related":
        settings = load_settings(dotenv_path=args.dotenv, require_llm=False)
        configure_logging(settings.log_level)
        client = SemanticScholarClient(
            api_key=settings.semantic_scholar_api_key,
            timeout_sec=settings.http_timeout_sec,
            trust_env=settings.network_trust_env,
        )
        if args.kind == "citations":
            papers = client.get_citations(args.paper_id, limit=args.limit)
        elif args.kind == "references":
            papers = client.get_references(args.paper_id, limit=args.limit)
        else:
            papers = client.get_related_papers(args.paper_id, limit=args.limit)
        if args.json:
            console.print_json(data=[asdict(paper) for paper in papers])
        else:
            _render_related(console, papers, args.kind)
        return

    settings = load_settings(dotenv_path=args.dotenv)
    configure_logging(settings.log_level)
    pipeline = PaperPlainPipeline.from_settings(settings, model=args.model)

    paper = _fetch_paper(pipeline, args)
    if args.command == "summarize" or not args.no_summary:
        paper = pipeline.summarize(paper, args.style)

    if args.command == "summarize":
        if args.json:
            console.print_json(data=paper.to_dict())
        else:
            _render_paper(console, paper)
        return

    exchange = pipeline.ask(args.question, paper)
    if args.json:
        console.print_json(data={"paper": paper.to_dict(), **exchange.to_dict()})
    else:
        _render_exchange(console, exchange)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    console = Console()
    try:
        run(args, console)
    except PaperPlainError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
