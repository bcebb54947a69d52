from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from spamsift.model.evaluation import EvaluationSummary


def save_confusion_matrix(summary: EvaluationSummary, out_path: Path) -> None:
    """
    Save a confusion matrix plot for an evaluation run.

    Parameters
    ----------
    summary : EvaluationSummary
        Result of `evaluation.evaluate`.
    out_path : Path
        Where to save the PNG. Parent directories are created if needed.
    """
    labels = list(summary.labels)

    # cm[row=true_class, col=pred_class], both in declared label order
    cm = np.array(
        [[summary.confusion[actual][predicted] for predicted in labels] for actual in labels]
    )

    fig, ax = plt.subplots(figsize=(4.5, 4.5), dpi=180)

    im = ax.imshow(cm, cmap="Blues")

    # Predicted is x, true is y
    ax.set_xticks(range(len(labels)))
    ax.set_xticklabels(labels)
    ax.set_yticks(range(len(labels)))
    ax.set_yticklabels(labels)

    ax.set_xlabel("Predicted label")
    ax.set_ylabel("True label")
    ax.set_title(f"Confusion Matrix (accuracy = {summary.accuracy:.3f})")

    # Annotate each cell with count, and adjust text color for contrast
    max_val = cm.max() if cm.size else 0
    for i in range(cm.shape[0]):
        for j in range(cm.shape[1]):
            val = cm[i, j]
            ax.text(
                j,
                i,
                str(val),
                ha="center",
                va="center",
                fontsize=11,
                color=("white" if max_val and val > max_val * 0.5 else "black"),
            )

    # Cell borders
    ax.set_xticks(np.arange(-0.5, len(labels), 1), minor=True)
    ax.set_yticks(np.arange(-0.5, len(labels), 1), minor=True)
    ax.grid(which="minor", color="black", linewidth=0.5, alpha=0.25)
    ax.tick_params(which="minor", bottom=False, left=False)

    cbar = fig.colorbar(im, ax=ax, fraction=0.046, pad=0.04)
    cbar.ax.set_ylabel("Count", rotation=-90, va="bottom")

    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(out_path, bbox_inches="tight")
    plt.close(fig)
