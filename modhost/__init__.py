"""modhost: bundle discovery, dependency ordering and module activation."""

__version__ = "0.1.0"
