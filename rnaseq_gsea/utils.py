"""
Utility functions for the RNA-seq GSEA input pipeline.

This module provides general-purpose utilities including:
- Loading external capabilities with a single install fallback
- Output directory and file name handling
"""

import os
import sys
import importlib
import subprocess

from .exceptions import MissingDependencyError


def require_package(module_name, pip_name=None, install=True):
    """
    Import an external capability, installing it once if it is missing.

    Args:
        module_name (str): Importable module name (e.g. 'pydeseq2.dds')
        pip_name (str): Distribution name on the package index
                        (defaults to the top-level module name)
        install (bool): Whether to attempt a one-time pip install

    Returns:
        module: The imported module

    Raises:
        MissingDependencyError: If the module is still unavailable
    """
    try:
        return importlib.import_module(module_name)
    except ImportError as e:
        first_error = e

    if pip_name is None:
        pip_name = module_name.split('.')[0]

    if install:
        print(f"  Warning: {module_name} not available, installing {pip_name}...")
        result = subprocess.run(
            [sys.executable, '-m', 'pip', 'install', pip_name],
            capture_output=False,
        )
        if result.returncode == 0:
            importlib.invalidate_caches()
            try:
                return importlib.import_module(module_name)
            except ImportError as e:
                first_error = e

    raise MissingDependencyError(
        f"Required package '{pip_name}' is not available "
        f"(import of {module_name} failed: {first_error})"
    )


def ensure_dir(path):
    """Create a directory (and parents) if it does not exist yet."""
    if path and not os.path.exists(path):
        os.makedirs(path)
    return path


def contrast_file(out_dir, contrast_name, suffix):
    """
    Build the path of a per-contrast output file.

    Args:
        out_dir (str): Output directory
        contrast_name (str): Contrast name (e.g. 'Mesenchymal_vs_rest')
        suffix (str): File suffix (e.g. '_ranks.rnk')

    Returns:
        str: Output file path
    """
    return os.path.join(out_dir, f'{contrast_name}{suffix}')
