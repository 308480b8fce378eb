"""proofbench: differential regression harness for a document compiler."""

__version__ = "0.3.0"
