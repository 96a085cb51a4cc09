"""fromzeros - FromZeros implementation generator."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fromzeros")
except PackageNotFoundError:
    __version__ = "(local)"
