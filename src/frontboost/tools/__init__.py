"""Adapters for the external transforms pipelines invoke."""
from frontboost.tools.base import PassthroughToolchain, Toolchain
from frontboost.tools.commands import CommandToolchain

__all__ = ["CommandToolchain", "PassthroughToolchain", "Toolchain"]
