"""Boundary adapters: subprocesses, files, HTTP."""
