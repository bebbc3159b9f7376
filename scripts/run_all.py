#!/usr/bin/env python3
"""
Main orchestration script - runs the complete analysis pipeline.

This script coordinates all pipeline steps:
1. Load and filter counts
2. Test differential expression contrasts
3. Write enrichment tool inputs
4. Plot QC heatmap and PCA (optional)

Steps run in order; a failing step stops the run. Files already
written by earlier steps are kept.

Usage:
    # Run the full pipeline
    python scripts/run_all.py

    # Use MyGene.info descriptions and skip plots
    python scripts/run_all.py --annotation mygene --skip-plots
"""

import os
import sys
import argparse
import subprocess
from datetime import datetime

# Add package root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rnaseq_gsea.config import (
    DATA_DIR, RESULTS_DIR, MIN_SAMPLES, ANNOTATION_SOURCE, N_CPUS, print_config,
)


def run_step(script_name, args_list, step_name):
    """Run a pipeline step as a subprocess."""
    print(f"\n{'='*60}")
    print(f"STEP: {step_name}")
    print(f"{'='*60}")

    script_path = os.path.join(os.path.dirname(__file__), script_name)
    cmd = [sys.executable, script_path] + args_list

    print(f"Running: {' '.join(cmd)}\n")

    result = subprocess.run(cmd, capture_output=False)

    if result.returncode != 0:
        print(f"  Error: {step_name} returned exit code {result.returncode}")
        return False

    return True


def run_pipeline_steps(data_dir, output_dir, min_samples, annotation, n_cpus,
                       skip_plots=False):
    """Run all steps, stopping at the first failure."""
    steps = [
        ('01_prepare_counts.py',
         ['--data-dir', data_dir, '--output-dir', output_dir,
          '--min-samples', str(min_samples)],
         'Prepare Counts'),
        ('02_run_contrasts.py',
         ['--data-dir', output_dir, '--n-cpus', str(n_cpus)],
         'Differential Expression'),
        ('03_write_gsea_inputs.py',
         ['--data-dir', output_dir, '--annotation', annotation],
         'GSEA Input Files'),
    ]
    if not skip_plots:
        steps.append(('04_plot_heatmap.py', ['--data-dir', output_dir], 'QC Plots'))

    for script_name, args_list, step_name in steps:
        if not run_step(script_name, args_list, step_name):
            return False

    return True


def main():
    parser = argparse.ArgumentParser(
        description='RNA-seq GSEA Input Pipeline',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the full pipeline
  python scripts/run_all.py

  # Relax the CPM filter for a small cohort
  python scripts/run_all.py --min-samples 3

  # Show configuration
  python scripts/run_all.py --show-config
        """
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        default=DATA_DIR,
        help='Directory containing the input tables'
    )
    parser.add_argument(
        '--output-dir',
        type=str,
        default=RESULTS_DIR,
        help='Output directory'
    )
    parser.add_argument(
        '--min-samples',
        type=int,
        default=MIN_SAMPLES,
        help='Minimum number of samples with CPM above the threshold'
    )
    parser.add_argument(
        '--annotation',
        type=str,
        default=ANNOTATION_SOURCE,
        help="Description source: 'biomart', 'mygene', 'none' or a table path"
    )
    parser.add_argument(
        '--n-cpus',
        type=int,
        default=N_CPUS,
        help='Number of CPUs used by pydeseq2'
    )
    parser.add_argument(
        '--skip-plots',
        action='store_true',
        help='Skip the QC plots'
    )
    parser.add_argument(
        '--show-config',
        action='store_true',
        help='Show current configuration and exit'
    )

    args = parser.parse_args()

    if args.show_config:
        print_config()
        return

    start_time = datetime.now()

    print("\n" + "=" * 60)
    print("RNA-seq GSEA Input Pipeline")
    print("=" * 60)
    print_config()

    success = run_pipeline_steps(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        min_samples=args.min_samples,
        annotation=args.annotation,
        n_cpus=args.n_cpus,
        skip_plots=args.skip_plots,
    )

    print(f"\nDuration: {datetime.now() - start_time}")

    if not success:
        print("\nPipeline failed!")
        sys.exit(1)

    print("\nPipeline complete!")


if __name__ == '__main__':
    main()
