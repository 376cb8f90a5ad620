"\"\"\"Typer CLI entrypoint for the ranking engine.\"\"\""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from .container import create_container
from .logging import configure_logging
from .pipeline import AuditLogger
from .schemas.config import load_config

app = typer.Typer(help="FORGE candidate ranking CLI.")


@app.command()
def run(
    request: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Analysis request JSON path."),
    output: Path = typer.Option(
        ...,
        exists=False,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
        help="Output JSON path.",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    profiles: Optional[Path] = typer.Option(
        None,
        exists=True,
        readable=True,
        dir_okay=False,
        help="Offline profile fixtures (JSON). Skips the live provider.",
    ),
    github_token: Optional[str] = typer.Option(None, envvar="GITHUB_TOKEN", help="GitHub API token."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
    audit_log: Optional[Path] = typer.Option(None, dir_okay=False, help="Audit log output (JSONL)."),
) -> None:
    """Analyze and rank the candidates of one request."""
    raw: Any = None
    if config:
        with config.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    try:
        app_config = load_config(raw)
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid config: {exc}", param_name="config") from exc

    settings = app_config.to_settings()
    if github_token:
        settings.setdefault("provider", {})["token"] = github_token

    configure_logging(log_level)

    container = create_container(settings=settings, profiles=profiles)
    pipeline = container.pipeline()
    audit_logger = AuditLogger(audit_log) if audit_log else None

    response = pipeline.run(request_path=request, output_path=output, audit_logger=audit_logger)
    if not response.get("success"):
        typer.echo(f"Analysis failed: {response.get('error')}", err=True)
        raise typer.Exit(code=1)

    meta = response["meta"]
    typer.echo(
        f"Analyzed {len(response['candidates'])} candidates "
        f"(ranked {meta['ranked']}, review {meta['review']}, filtered {meta['filtered']}). "
        f"Results saved to {output}."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
