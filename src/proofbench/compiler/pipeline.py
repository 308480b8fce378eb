"""Orchestrates the full compilation pipeline: Source → Syntax → Content → Frames."""

from __future__ import annotations

from dataclasses import dataclass, field

from proofbench.compiler.errors import SourceDiagnostic
from proofbench.compiler.eval import Module, evaluate
from proofbench.compiler.layout import Frame, layout
from proofbench.compiler.world import World


@dataclass
class CompiledResult:
    """Pages on success, diagnostics on failure; never both."""

    pages: list[Frame] = field(default_factory=list)
    diagnostics: list[SourceDiagnostic] = field(default_factory=list)
    module: Module | None = None

    @property
    def ok(self) -> bool:
        return not self.diagnostics


class CompilationPipeline:
    """Orchestrates: Parse → Evaluation → Layout."""

    def compile(self, world: World) -> CompiledResult:
        """Compile the main source of ``world``."""
        # Phase 1: Parsing already happened when the source was set; syntax
        # errors surface from evaluation.
        # Phase 2: Evaluation
        module = evaluate(world, world.main())
        if module.diagnostics:
            return CompiledResult(diagnostics=module.diagnostics, module=module)

        # Phase 3: Layout
        pages = layout(module.content, module.styles)
        return CompiledResult(pages=pages, module=module)
