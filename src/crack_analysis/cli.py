"""Command line entry points for the crack analysis pipeline."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import typer

from .config import AdaptiveThresholdMode, AnalysisConfig
from .errors import CrackAnalysisError
from .pipeline import CrackAnalyzer
from .results import AnalysisResult
from .schemas import AnalysisResponse
from .visualization import save_visualization

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

app = typer.Typer(help="Detect and quantify surface cracks in an image.")


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.environ.get("CRACK_ANALYSIS_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def _load_config(**overrides: object) -> AnalysisConfig:
    try:
        return AnalysisConfig.from_env().with_overrides(**overrides)
    except ValueError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc


@app.command()
def analyze(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image file to analyze."),
    output: Optional[Path] = typer.Option(None, help="Where to write the annotated image."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON (without the image payload)."),
    visualize: Optional[Path] = typer.Option(None, help="Write a multi-panel summary figure to this path."),
    min_crack_area: Optional[int] = typer.Option(None, help="Minimum contour area kept as a crack region."),
    canny_low: Optional[int] = typer.Option(None, help="Lower Canny hysteresis threshold."),
    canny_high: Optional[int] = typer.Option(None, help="Upper Canny hysteresis threshold."),
    adaptive_threshold: Optional[AdaptiveThresholdMode] = typer.Option(
        None, case_sensitive=False, help="Use of the adaptive threshold branch."
    ),
    log_level: Optional[str] = typer.Option(None, help="Logging level."),
) -> None:
    """Analyze a single image and print a summary."""

    configure_logging(log_level)
    config = _load_config(
        min_crack_area=min_crack_area,
        canny_low_threshold=canny_low,
        canny_high_threshold=canny_high,
        adaptive_threshold=adaptive_threshold,
    )
    analyzer = CrackAnalyzer(config)
    try:
        artifact = analyzer.inspect(image.read_bytes(), image.name)
    except CrackAnalysisError as exc:
        typer.echo(f"Error: {exc.describe()}", err=True)
        raise typer.Exit(code=1 if exc.client_error else 2) from exc

    result = artifact.result
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(result.processed_image)
    if visualize is not None:
        save_visualization(artifact, visualize, title=image.name)

    if as_json:
        response = AnalysisResponse.from_result(result, include_image=False)
        typer.echo(response.model_dump_json(by_alias=True, exclude_none=True, indent=2))
    else:
        typer.echo(_format_summary(image, result))


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: int = typer.Option(8080, help="Port to listen on."),
    log_level: Optional[str] = typer.Option(None, help="Logging level."),
) -> None:
    """Run the HTTP service."""

    import uvicorn

    from .service import create_app

    configure_logging(log_level)
    uvicorn.run(create_app(_load_config()), host=host, port=port)


def _format_summary(path: Path, result: AnalysisResult) -> str:
    return (
        f"{path.name}: cracks={result.crack_count}, area={result.total_crack_area:.1f}, "
        f"coverage={result.crack_percentage:.4f}%, severity={result.severity.value}, "
        f"time={result.processing_time_ms}ms"
    )


def main() -> None:  # pragma: no cover - Typer handles invocation
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
