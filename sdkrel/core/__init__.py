"""Core primitives: results, exit codes, configuration."""
