"""Publish a tree of interlinked markdown documents as HTML."""

__version__ = "0.1.0"
