"""agentplan: agent catalog registry and phase-ordered workflow resolver."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("agentplan")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"
