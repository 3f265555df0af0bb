import json
import logging
import typer
from pathlib import Path
from typing import Optional

from .config import DEFAULT_WORKERS

app = typer.Typer(add_completion=False)


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
):
    """
    Extract yomikae (読み替え) clauses from Japanese statutes.
    """
    level = getattr(logging, log_level.upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"Invalid log-level: {log_level}")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def extract(
    targets: Path = typer.Option(..., help="Path to targets.yaml"),
    output: Path = typer.Option(Path("yomikae.json"), help="Output file for parsed clauses"),
    error_output: Path = typer.Option(Path("yomikae_err.json"), help="Output file for clause failures"),
    work_dir: Optional[Path] = typer.Option(None, help="Directory of downloaded law XML/JSON files (default: e-Gov API)"),
    output_format: str = typer.Option("json", "--format", help="Output format: json or jsonl"),
    workers: int = typer.Option(DEFAULT_WORKERS, help="Number of parser threads per law"),
    validate: bool = typer.Option(True, help="Validate scopes against the article index"),
    report: Path = typer.Option(Path("report.json"), help="Path of the run report"),
):
    """
    Parse the yomikae clauses of every target law.

    --format:
      json:  一つの JSON 配列 - デフォルト
      jsonl: 1 行 1 レコード
    """
    from .core.extractor import YomikaeExtractor
    from .core.writer import OutputFormat, ResultWriter, write_report

    if output_format not in ("json", "jsonl"):
        raise typer.BadParameter(f"Invalid format: {output_format}. Must be 'json' or 'jsonl'.")
    if workers < 1:
        raise typer.BadParameter(f"Invalid workers: {workers}. Must be 1 or more.")

    extractor = YomikaeExtractor(targets, work_dir=work_dir, workers=workers, validate=validate)
    outcome = extractor.extract()

    writer = ResultWriter(OutputFormat(output_format))
    writer.write_results(outcome.results, output)
    writer.write_failures(outcome.failures, error_output)
    write_report(outcome.report, report)


@app.command()
def parse(
    text: str = typer.Argument(..., help="Clause text"),
    law_id: str = typer.Option("", help="Law id for the location"),
    article: str = typer.Option("", help="Article key (e.g. 5 or 3_2)"),
    paragraph: Optional[int] = typer.Option(None, help="Paragraph number"),
    item: Optional[str] = typer.Option(None, help="Item key"),
):
    """
    Parse a single clause and print the result as JSON (no scope validation).
    """
    from .core.models import ClauseCandidate, ClauseFailure, ClauseLocation
    from .core.parser import parse_clause

    location = ClauseLocation(law_id=law_id, article=article, paragraph=paragraph, item=item)
    outcome = parse_clause(ClauseCandidate(location=location, text=text))
    typer.echo(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    if isinstance(outcome, ClauseFailure):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
