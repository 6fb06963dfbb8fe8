"""Core data model, solver and pipeline for nestsolve."""
