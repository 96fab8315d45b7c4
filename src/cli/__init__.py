"""CLI tools for the benefits document pipeline.

- ``python -m src.cli.ingest`` -- initialise stores, register, process and
  search tenant documents.
"""
