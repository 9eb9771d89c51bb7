"""Release version of the swap risk dashboard; keep in step with pyproject.toml."""

__version__ = "0.3.0"
