import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from numpy_conv import get_dimensions


def _format_value(val):
    if val == int(val):
        return f"{int(val)}"
    return f"{val:g}"


def plot_matrix(ax, matrix, title=None, cmap='Blues', padding=0, show_values=True):
    """Draw one matrix as an annotated grid; padded border cells are greyed out."""
    m = np.asarray(matrix, dtype=np.float64)
    rows, cols = get_dimensions(m)
    ax.set_xticks([])
    ax.set_yticks([])
    if title:
        ax.set_title(title, fontsize=9)

    if rows == 0:
        ax.text(0.5, 0.5, 'no output', ha='center', va='center', fontsize=8, color='gray',
                transform=ax.transAxes)
        for spine in ax.spines.values():
            spine.set_linestyle('--')
            spine.set_color('gray')
        return ax

    vmax = np.abs(m).max() or 1.0
    vmin = -vmax if m.min() < 0 else 0
    ax.imshow(m, cmap=cmap, vmin=vmin, vmax=vmax)

    for i in range(rows):
        for j in range(cols):
            is_pad = padding > 0 and (i < padding or i >= rows - padding or
                                      j < padding or j >= cols - padding)
            if is_pad:
                ax.add_patch(Rectangle((j - 0.5, i - 0.5), 1, 1, facecolor='#dddddd',
                                       edgecolor='white', linestyle='--', linewidth=0.5))
            if not show_values:
                continue
            val = m[i, j]
            if is_pad:
                color = 'gray'
            elif val == 0:
                color = 'red'
            else:
                color = "white" if abs(val) > vmax / 2 else "black"
            ax.text(j, i, _format_value(val), ha="center", va="center", color=color,
                    fontsize=7, fontweight='bold' if val == 0 and not is_pad else 'normal')

    ax.set_xlabel(f"{rows}x{cols}", fontsize=7, color='gray')
    return ax


def plot_matrix_row(matrices, titles=None, cmap='Blues', padding=0, cell_size=0.45):
    n = max(len(matrices), 1)
    widest = max([get_dimensions(m)[1] for m in matrices] + [1])
    tallest = max([get_dimensions(m)[0] for m in matrices] + [1])
    fig, axes = plt.subplots(1, n, figsize=(max(n * widest * cell_size, 2), max(tallest * cell_size + 0.6, 1.5)))
    axes = [axes] if n == 1 else axes

    if not matrices:
        plot_matrix(axes[0], [])
        return fig

    for i, m in enumerate(matrices):
        title = titles[i] if titles else None
        plot_matrix(axes[i], m, title=title, cmap=cmap, padding=padding)

    plt.tight_layout()
    return fig
