"""Workspace tools for coding agents: files, unified-diff patching, git, project maps, search and planning."""

__version__ = "0.1.0"