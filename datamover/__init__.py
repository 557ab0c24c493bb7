"""datamover: instrumented record conversion for data-movement pipelines."""

__version__ = "0.1.0"
