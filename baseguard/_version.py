from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pybaseguard")
except PackageNotFoundError:  # pragma: no cover
    # Running from a source tree without installed package metadata
    __version__ = "0.0.0"
