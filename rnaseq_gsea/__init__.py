"""
RNA-seq GSEA Input Pipeline

This package filters RNA-seq counts, tests differential expression
between molecular subtypes and writes the input files of enrichment
tools (g:Profiler gene lists, GSEA rank, expression and class files).

Modules:
    - data_loading: Read and align count matrix and class definitions
    - preprocessing: CPM filtering and gene identifier handling
    - deseq2_utils: Contrasts and differential expression backends
    - annotation: Gene symbol -> description lookups
    - exporters: Writers for gene lists, rank, expression and class files
    - visualization: Heatmap and PCA quality control plots
    - pipeline: End-to-end orchestration
    - utils: General utilities
    - exceptions: Pipeline errors
    - config: Configuration settings
"""

from .exceptions import (
    PipelineError,
    MissingDependencyError,
    DataMismatchError,
    FormatWriteError,
)

from .data_loading import (
    read_count_matrix,
    read_class_table,
    align_samples,
    load_inputs,
    read_matrix,
    read_results_table,
)

from .preprocessing import (
    compute_cpm,
    filter_low_expression,
    is_unannotated,
    filter_unannotated,
    filter_counts,
    gene_symbol,
    split_gene_ids,
)

from .deseq2_utils import (
    Contrast,
    pairwise_contrast,
    one_vs_rest_contrast,
    build_contrasts,
    DifferentialExpressionBackend,
    PyDESeq2Backend,
    run_contrasts,
    get_sig_genes,
)

from .annotation import (
    AnnotationSource,
    BiomartAnnotation,
    MyGeneAnnotation,
    TableAnnotation,
    clean_descriptions,
    get_annotation_source,
)

from .exporters import (
    significant_symbols,
    write_significant_genes,
    compute_rank_scores,
    write_rank_file,
    build_expression_table,
    write_expression_table,
    format_cls,
    write_cls_file,
    write_results_table,
)

from .visualization import (
    prepare_heatmap_matrix,
    plot_expression_heatmap,
    plot_sample_pca,
)

from .pipeline import (
    write_contrast_outputs,
    write_expression_outputs,
    run_pipeline,
)

from .utils import (
    require_package,
    ensure_dir,
    contrast_file,
)

from .config import (
    MIN_SAMPLES,
    CPM_THRESHOLD,
    FDR_THRESHOLD,
    CLASS_ORDER,
    SAMPLE_ID_LENGTH,
    RESULTS_DIR,
    print_config,
)

__version__ = '1.0.0'
