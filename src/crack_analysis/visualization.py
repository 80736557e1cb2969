"""Region annotation and the summary figure written by the CLI."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .results import AnalysisResult, CrackRegion

if TYPE_CHECKING:
    from .pipeline import PipelineArtifact

REGION_COLOR = (0, 0, 255)  # BGR red
REGION_THICKNESS = 2
LABEL_COLOR = "yellow"


def annotate_regions(image: np.ndarray, regions: Sequence[CrackRegion]) -> np.ndarray:
    """Return a copy of ``image`` with each region outlined."""

    annotated = image.copy()
    for region in regions:
        cv2.rectangle(
            annotated,
            (region.x, region.y),
            (region.x + region.width, region.y + region.height),
            REGION_COLOR,
            REGION_THICKNESS,
            cv2.LINE_8,
        )
    return annotated


def overlay_mask(image: np.ndarray, mask: np.ndarray, alpha: float = 0.5) -> np.ndarray:
    """Blend the region color into the pixels the closed edge mask marks.

    Pixels outside the mask keep their exact value.
    """

    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    painted = image.copy()
    painted[mask > 0] = REGION_COLOR
    return cv2.addWeighted(painted, alpha, image, 1.0 - alpha, 0)


def summary_line(result: AnalysisResult) -> str:
    return (
        f"{result.crack_count} regions, {result.crack_percentage:.2f}% coverage, "
        f"{result.severity.value} severity"
    )


def _figure_panels(artifact: PipelineArtifact) -> List[Tuple[str, np.ndarray]]:
    panels = [
        ("Decoded", artifact.original),
        ("Closed edges", overlay_mask(artifact.original, artifact.preprocessed.mask)),
    ]
    if artifact.preprocessed.threshold is not None:
        panels.append(("Adaptive threshold", artifact.preprocessed.threshold))
    panels.append(("Regions", artifact.annotated))
    return panels


def _show(ax, image: np.ndarray) -> None:
    if image.ndim == 2:
        ax.imshow(image, cmap="gray", vmin=0, vmax=255)
    else:
        ax.imshow(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
    ax.axis("off")


def save_visualization(artifact: PipelineArtifact, destination: Path, title: Optional[str] = None) -> None:
    """Write one figure with a panel per pipeline stage.

    The regions panel numbers each crack region in the order the result
    lists them, and the figure title carries the count, coverage and severity.
    """

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt  # Imported lazily so the service never loads it.

    panels = _figure_panels(artifact)
    destination.parent.mkdir(parents=True, exist_ok=True)
    fig, axes = plt.subplots(1, len(panels), figsize=(4 * len(panels), 4), squeeze=False)

    for ax, (name, image) in zip(axes[0], panels):
        _show(ax, image)
        ax.set_title(name)

    regions_ax = axes[0][-1]
    for index, region in enumerate(artifact.result.crack_regions, start=1):
        regions_ax.text(region.x, max(region.y - 4, 0), str(index), color=LABEL_COLOR, fontsize=8, va="bottom")

    summary = summary_line(artifact.result)
    fig.suptitle(f"{title}: {summary}" if title else summary)
    fig.tight_layout()
    fig.savefig(destination, dpi=150)
    plt.close(fig)
