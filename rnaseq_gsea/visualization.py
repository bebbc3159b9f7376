"""
Visualization utilities for quality control of the expression data.

This module provides plotting functions for:
- Clustered heatmap of significant genes with a class color strip
- 2D PCA of samples colored by class
"""

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.patches import Patch
from sklearn.decomposition import PCA
import scipy.stats as stats

from .config import ZERO_EPSILON, PLOT_DPI


def _class_palette(labels, class_colors=None):
    import seaborn as sns

    groups = list(dict.fromkeys(labels))
    if class_colors is not None and all(g in class_colors for g in groups):
        return {g: class_colors[g] for g in groups}
    colors = sns.color_palette('tab10', max(len(groups), 1))
    return dict(zip(groups, colors))


def prepare_heatmap_matrix(expression_table, genes, epsilon=ZERO_EPSILON):
    """
    Z-score the rows of the significant genes for plotting.

    Each gene's row is scaled to mean 0 and standard deviation 1, exact
    zeros are replaced by `epsilon`, and genes with no variance (which
    have no defined z-score or correlation distance) are dropped.

    Args:
        expression_table (pd.DataFrame): Annotated expression table with
                                         'Name', 'Description' and sample columns
        genes (list): Gene symbols to keep
        epsilon (float): Replacement for exact-zero values

    Returns:
        pd.DataFrame: Scaled matrix (genes x samples), indexed by symbol
    """
    table = expression_table[expression_table['Name'].isin(set(genes))]
    values = table.drop(columns=['Name', 'Description']).astype(float)

    with np.errstate(invalid='ignore', divide='ignore'):
        scaled = stats.zscore(values.to_numpy(), axis=1)

    z = pd.DataFrame(scaled, index=table['Name'].to_numpy(), columns=values.columns)
    z = z[np.isfinite(z.to_numpy()).all(axis=1)]
    z = z.mask(z == 0, epsilon)
    return z


def plot_expression_heatmap(expression_table, classes, genes, out_path,
                            class_colors=None, cmap='RdBu_r', dpi=PLOT_DPI):
    """
    Create a clustered heatmap of significant genes.

    Rows are clustered by correlation distance (average linkage); columns
    keep the original sample order and carry a color strip per class.

    Args:
        expression_table (pd.DataFrame): Annotated expression table
        classes (list or pd.Series): Class label per sample column, in order
        genes (list): Gene symbols to plot
        out_path (str): Output image path
        class_colors (dict): Optional class -> color mapping
        cmap (str): Colormap name
        dpi (int): Resolution of the saved image

    Returns:
        str: Output path, or None when fewer than two genes can be plotted
    """
    import seaborn as sns

    z = prepare_heatmap_matrix(expression_table, genes)
    print(f"  Heatmap matrix shape (genes x samples): {z.shape}")

    if len(z) < 2:
        print("  Warning: fewer than 2 variable significant genes, skipping heatmap")
        return None

    labels = [str(c) for c in classes]
    palette = _class_palette(labels, class_colors)
    col_colors = [palette[label] for label in labels]

    grid = sns.clustermap(
        z,
        row_cluster=True,
        col_cluster=False,
        metric='correlation',
        method='average',
        cmap=cmap,
        center=0,
        col_colors=col_colors,
        xticklabels=False,
        yticklabels=len(z) <= 100,
        figsize=(10, 10),
    )

    handles = [Patch(facecolor=color, label=group) for group, color in palette.items()]
    grid.ax_heatmap.legend(handles=handles, loc='upper left',
                           bbox_to_anchor=(1.02, 1.15), frameon=False)

    grid.savefig(out_path, dpi=dpi)
    plt.close(grid.figure)

    return out_path


def plot_sample_pca(normalized, classes, out_path, class_colors=None, dpi=PLOT_DPI):
    """
    Create a 2D PCA scatter plot of samples colored by class.

    Args:
        normalized (pd.DataFrame): Normalized expression (genes x samples)
        classes (list or pd.Series): Class label per sample column, in order
        out_path (str): Output image path
        class_colors (dict): Optional class -> color mapping
        dpi (int): Resolution of the saved image

    Returns:
        str: Output path
    """
    X = np.log2(normalized.T.to_numpy(dtype=float) + 1)
    y = np.array([str(c) for c in classes])

    pca = PCA(n_components=2, random_state=0)
    X_r = pca.fit_transform(X)

    print(f"  PCA explained variance ratio: {pca.explained_variance_ratio_}")

    palette = _class_palette(list(y), class_colors)

    fig, ax = plt.subplots(figsize=(8, 6))
    for group, color in palette.items():
        ax.scatter(X_r[y == group, 0], X_r[y == group, 1],
                   color=color, alpha=0.8, lw=2, label=group)

    ax.legend(loc="best", shadow=False, scatterpoints=1, fontsize=12)
    ax.set_xlabel(f'PC1 ({pca.explained_variance_ratio_[0]:.1%})', fontsize=14)
    ax.set_ylabel(f'PC2 ({pca.explained_variance_ratio_[1]:.1%})', fontsize=14)
    plt.tight_layout()

    fig.savefig(out_path, dpi=dpi)
    plt.close(fig)

    return out_path
