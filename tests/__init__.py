"""Test suite configuration and marker guidance.

Use ``pytest -m smoke`` for rapid feedback on imports.
Use ``pytest -m unit`` for fast feedback on unit tests. BAM-backed unit tests are skipped when pysam is missing.
Use ``pytest -m e2e`` to run the command line end to end on small BAM files.
Use ``pytest`` to run everything.
"""
