"""Benchmark harness executed as a subprocess by each runtime adapter.

Run as ``<interpreter> -m scbench.harness --scenario NAME [--json]``. The
harness is copied into every workspace and must run on all supported
interpreters, so it only depends on the standard library (plus whatever
library the selected scenario exercises).
"""
