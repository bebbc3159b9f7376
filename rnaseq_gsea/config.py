"""
Configuration settings for the RNA-seq GSEA input pipeline.

This module centralizes thresholds, class definitions and file names
so every step script runs with the same protocol settings.
"""

# =============================================================================
# INPUT FILES
# =============================================================================
# Raw counts (genes x samples), row names are "SYMBOL|ENTREZID"
COUNTS_FILENAME = 'Supplementary_Table13_RNAseq_expression.txt'

# Class definitions (sample id -> subtype)
CLASSES_FILENAME = 'Supplementary_Table14_RNAseq_classdefinitions.txt'

# Column of the class table holding the subtype label
CLASS_COLUMN = 'SUBTYPE'

# =============================================================================
# GENE FILTERING
# =============================================================================
# Keep genes with CPM > CPM_THRESHOLD in at least MIN_SAMPLES samples.
# MIN_SAMPLES is tied to the size of the smallest class.
CPM_THRESHOLD = 1.0
MIN_SAMPLES = 50

# Row ids containing '?' or starting with 'LOC' have no curated symbol
UNANNOTATED_PATTERN = r'\?|^LOC'

# =============================================================================
# DIFFERENTIAL EXPRESSION
# =============================================================================
# Fixed enumeration order of the classes (also the .cls header order)
CLASS_ORDER = ['Immunoreactive', 'Mesenchymal', 'Differentiated', 'Proliferative']

# Pairwise contrasts as (group, reference); each class is additionally
# tested against the mean of the other classes
PAIRWISE_CONTRASTS = [('Mesenchymal', 'Immunoreactive')]
ONE_VS_REST = True

# Adjusted p-value threshold for the significant gene lists
FDR_THRESHOLD = 0.05

# Worker processes used by pydeseq2
N_CPUS = 1

# =============================================================================
# EXPORT
# =============================================================================
# TCGA barcodes are truncated to the participant prefix (TCGA-XX-XXXX)
SAMPLE_ID_LENGTH = 12

# Suffixes of the per-contrast output files
SIGNIFICANT_SUFFIX = '_allsignificantgenes.txt'
RANK_SUFFIX = '_ranks.rnk'
RESULTS_SUFFIX = '_results.txt'

EXPRESSION_FILENAME = 'expression_file.txt'
CLS_FILENAME = 'classes.cls'
FILTERED_COUNTS_FILENAME = 'filtered_counts.txt'
NORMALIZED_COUNTS_FILENAME = 'normalized_counts.txt'
ALIGNED_CLASSES_FILENAME = 'aligned_classes.txt'

# =============================================================================
# ANNOTATION
# =============================================================================
# Options: 'biomart', 'mygene', 'none' or a path to a symbol/description table
ANNOTATION_SOURCE = 'biomart'
BIOMART_HOST = 'http://www.ensembl.org'
BIOMART_DATASET = 'hsapiens_gene_ensembl'
ANNOTATION_SPECIES = 'human'

# Symbols per biomart request
ANNOTATION_BATCH_SIZE = 500

# =============================================================================
# VISUALIZATION
# =============================================================================
# Contrast whose significant genes are drawn in the heatmap
HEATMAP_CONTRAST = 'Mesenchymal_vs_Immunoreactive'
HEATMAP_FILENAME = 'heatmap_significant_genes.png'
PCA_FILENAME = 'sample_pca.png'

# Replaces exact zeros after row scaling
ZERO_EPSILON = 1e-6

CLASS_COLORS = {
    'Immunoreactive': 'tab:blue',
    'Mesenchymal': 'tab:orange',
    'Differentiated': 'tab:green',
    'Proliferative': 'tab:red',
}

# Plot DPI for saved figures
PLOT_DPI = 300

# =============================================================================
# FILE PATHS
# =============================================================================
# Input data directory
DATA_DIR = 'data'

# Output directory for results
RESULTS_DIR = 'results'


def contrast_names():
    """Names of the contrasts run with the default protocol."""
    names = [f'{group}_vs_{ref}' for group, ref in PAIRWISE_CONTRASTS]
    if ONE_VS_REST:
        names += [f'{group}_vs_rest' for group in CLASS_ORDER]
    return names


def get_contrast_by_name(name):
    """
    Get the (group, reference) pair of a configured contrast.

    One-vs-rest contrasts return 'rest' as the reference.

    Args:
        name (str): Contrast name (e.g. 'Mesenchymal_vs_Immunoreactive')

    Returns:
        tuple: (group, reference)
    """
    if name not in contrast_names():
        raise ValueError(f"Unknown contrast: {name}")
    group, ref = name.split('_vs_')
    return group, ref


def print_config():
    """Print current configuration settings."""
    print("=" * 60)
    print("CURRENT CONFIGURATION")
    print("=" * 60)
    print(f"Counts file: {COUNTS_FILENAME}")
    print(f"Classes file: {CLASSES_FILENAME} (column {CLASS_COLUMN})")
    print(f"CPM filter: CPM > {CPM_THRESHOLD} in >= {MIN_SAMPLES} samples")
    print(f"Classes: {CLASS_ORDER}")
    print(f"Contrasts: {contrast_names()}")
    print(f"FDR threshold: {FDR_THRESHOLD}")
    print(f"Sample id length: {SAMPLE_ID_LENGTH}")
    print(f"Annotation source: {ANNOTATION_SOURCE}")
    print(f"Data dir: {DATA_DIR}")
    print(f"Results dir: {RESULTS_DIR}")
    print("=" * 60)
