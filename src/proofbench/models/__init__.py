"""Pydantic domain models for proofbench."""

from proofbench.models.errors import Annotation
from proofbench.models.fixture import Subtest, TestFile

__all__ = [
    "Annotation",
    "Subtest",
    "TestFile",
]
