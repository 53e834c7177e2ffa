"""covgather - gcov coverage gathering into a queryable file/function/line model."""

__version__ = "0.1.0"
