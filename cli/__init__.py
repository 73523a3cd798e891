"""Command line interface for icomap."""
