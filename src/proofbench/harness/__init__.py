"""Regression harness: fuzzing, annotations, golden images and orchestration."""

from proofbench.harness.runner import FileReport, RunOptions, TestRunner, discover

__all__ = [
    "FileReport",
    "RunOptions",
    "TestRunner",
    "discover",
]
