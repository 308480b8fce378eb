"""Reference document compiler used by the harness."""

from proofbench.compiler.errors import EvalError, FileError, OverlargeFrameError, SourceDiagnostic
from proofbench.compiler.layout import Frame
from proofbench.compiler.pipeline import CompilationPipeline, CompiledResult
from proofbench.compiler.render import render
from proofbench.compiler.world import FontBook, PrintConfig, TestWorld, World

__all__ = [
    "CompilationPipeline",
    "CompiledResult",
    "EvalError",
    "FileError",
    "FontBook",
    "Frame",
    "OverlargeFrameError",
    "PrintConfig",
    "SourceDiagnostic",
    "TestWorld",
    "World",
    "render",
]
