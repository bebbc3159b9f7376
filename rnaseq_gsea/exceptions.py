"""Exceptions raised by the RNA-seq GSEA input pipeline."""


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    pass


class MissingDependencyError(PipelineError, ImportError):
    """An external capability (library or service client) is unavailable."""

    pass


class DataMismatchError(PipelineError, ValueError):
    """Sample identifiers or class labels do not line up between inputs."""

    pass


class FormatWriteError(PipelineError, OSError):
    """An output file could not be written."""

    pass
