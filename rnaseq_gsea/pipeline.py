"""
End-to-end pipeline: load -> filter -> test contrasts -> export.

Each stage is also exposed on its own so the step scripts can run the
pipeline piecewise through files in the results directory.
"""

import os

from .config import (
    MIN_SAMPLES, CPM_THRESHOLD, FDR_THRESHOLD, CLASS_ORDER, SAMPLE_ID_LENGTH,
    SIGNIFICANT_SUFFIX, RANK_SUFFIX, RESULTS_SUFFIX, EXPRESSION_FILENAME,
    CLS_FILENAME, HEATMAP_CONTRAST, HEATMAP_FILENAME, ANNOTATION_SOURCE,
    CLASS_COLORS,
)
from .annotation import get_annotation_source
from .data_loading import load_inputs
from .deseq2_utils import build_contrasts, run_contrasts
from .exporters import (
    significant_symbols, write_significant_genes, write_rank_file,
    write_results_table, build_expression_table, write_expression_table,
    write_cls_file,
)
from .preprocessing import filter_counts
from .utils import ensure_dir, contrast_file


def write_contrast_outputs(results, out_dir, fdr=FDR_THRESHOLD):
    """
    Write the gene list, rank file and result table of every contrast.

    Args:
        results (dict): Contrast name -> result table
        out_dir (str): Output directory
        fdr (float): Adjusted p-value threshold for the gene lists

    Returns:
        dict: Contrast name -> {'significant', 'ranks', 'results'} paths
    """
    ensure_dir(out_dir)
    paths = {}

    for name, res in results.items():
        sig_path = contrast_file(out_dir, name, SIGNIFICANT_SUFFIX)
        rank_path = contrast_file(out_dir, name, RANK_SUFFIX)
        res_path = contrast_file(out_dir, name, RESULTS_SUFFIX)

        symbols = write_significant_genes(res, sig_path, fdr=fdr)
        write_rank_file(res, rank_path)
        write_results_table(res, res_path)

        print(f"  {name}: {len(symbols)} significant genes, "
              f"{len(res)} ranked genes")
        paths[name] = {'significant': sig_path, 'ranks': rank_path,
                       'results': res_path}

    return paths


def write_expression_outputs(normalized, classes, out_dir, annotation=None,
                             class_order=None, sample_id_length=SAMPLE_ID_LENGTH):
    """
    Write the annotated expression table and the class file.

    Args:
        normalized (pd.DataFrame): Normalized expression (genes x samples)
        classes (pd.Series): Class labels aligned to the sample columns
        out_dir (str): Output directory
        annotation (AnnotationSource, str or pd.DataFrame): Description lookup
        class_order (list): Class enumeration for the .cls header
        sample_id_length (int): Characters kept from sample ids

    Returns:
        tuple: (expression_table, expression_path, cls_path)
    """
    if annotation is None:
        annotation = ANNOTATION_SOURCE
    if class_order is None:
        class_order = CLASS_ORDER
    if isinstance(annotation, str):
        annotation = get_annotation_source(annotation)

    ensure_dir(out_dir)

    table = build_expression_table(normalized, annotation,
                                   sample_id_length=sample_id_length)
    expression_path = write_expression_table(
        table, os.path.join(out_dir, EXPRESSION_FILENAME))
    print(f"  Expression table shape: {table.shape}")

    cls_path = write_cls_file(list(classes), os.path.join(out_dir, CLS_FILENAME),
                              class_order)

    return table, expression_path, cls_path


def run_pipeline(counts_path, classes_path, out_dir, class_col=None,
                 min_samples=MIN_SAMPLES, threshold=CPM_THRESHOLD,
                 fdr=FDR_THRESHOLD, class_order=None, contrasts=None,
                 backend=None, annotation=None, heatmap_contrast=HEATMAP_CONTRAST,
                 sample_id_length=SAMPLE_ID_LENGTH):
    """
    Run the complete pipeline.

    Pipeline order:
    1. Load and align counts and classes
    2. Filter low-expression and unannotated genes
    3. Fit the statistics backend and test every contrast
    4. Write gene lists, rank files and result tables per contrast
    5. Write the annotated expression table and the class file
    6. Plot the heatmap of one contrast's significant genes (optional)

    Args:
        counts_path (str): Raw count matrix path
        classes_path (str): Class definition table path
        out_dir (str): Output directory
        class_col (str): Class label column of the class table
        min_samples (int): CPM filter minimum sample count
        threshold (float): CPM filter threshold
        fdr (float): Adjusted p-value threshold
        class_order (list): Class enumeration (defaults to config.CLASS_ORDER)
        contrasts (list): Contrast objects (defaults to the protocol contrasts)
        backend (DifferentialExpressionBackend): Statistics backend
        annotation (AnnotationSource, str or pd.DataFrame): Description lookup
        heatmap_contrast (str): Contrast drawn in the heatmap (None to skip)
        sample_id_length (int): Characters kept from sample ids

    Returns:
        dict: 'results', 'paths', 'expression', 'cls' and 'heatmap' entries
    """
    if class_order is None:
        class_order = CLASS_ORDER
    if contrasts is None:
        contrasts = build_contrasts(groups=class_order)

    print("\n[1/5] Loading inputs...")
    counts, classes = load_inputs(counts_path, classes_path, class_col=class_col)

    print("\n[2/5] Filtering genes...")
    filtered = filter_counts(counts, min_samples=min_samples, threshold=threshold)

    print("\n[3/5] Testing contrasts...")
    results, backend = run_contrasts(filtered, classes, contrasts, backend=backend)

    print("\n[4/5] Writing gene lists and rank files...")
    paths = write_contrast_outputs(results, out_dir, fdr=fdr)

    print("\n[5/5] Writing expression and class files...")
    table, expression_path, cls_path = write_expression_outputs(
        backend.normalized_counts(), classes, out_dir,
        annotation=annotation, class_order=class_order,
        sample_id_length=sample_id_length,
    )

    heatmap_path = None
    if heatmap_contrast is not None and heatmap_contrast in results:
        from .visualization import plot_expression_heatmap

        print(f"\nPlotting heatmap for {heatmap_contrast}...")
        genes = significant_symbols(results[heatmap_contrast], fdr=fdr)
        heatmap_path = plot_expression_heatmap(
            table, classes, genes, os.path.join(out_dir, HEATMAP_FILENAME),
            class_colors=CLASS_COLORS,
        )

    return {
        'results': results,
        'paths': paths,
        'expression': expression_path,
        'cls': cls_path,
        'heatmap': heatmap_path,
    }
