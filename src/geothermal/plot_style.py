import logging
from pathlib import Path

import matplotlib.pyplot as plt

log = logging.getLogger(__name__)


def setup_style():
    """Apply shared matplotlib style."""
    plt.rcParams.update({
        "figure.figsize": (5, 7),
        "axes.grid": True,
        "grid.alpha": 0.4,
        "font.size": 10,
    })
    plt.rcParams.setdefault("savefig.bbox", "tight")


def save_figure(fig, filename: str | Path):
    """
    Save figure to the specified path.
    """
    filepath = Path(filename)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(filepath, bbox_inches="tight")
    log.info(f"Saved: {filepath}")
    return filepath
