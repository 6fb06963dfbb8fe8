"""nestsolve command-line interface."""
