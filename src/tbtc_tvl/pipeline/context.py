from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..domain import RunReport, ValidationReport
from ..state import AppState
from .extraction import ExtractionRun
from .worklist import WorklistEntry


@dataclass
class PipelineContext:
    state: AppState
    worklist: list[WorklistEntry] | None = None
    run: ExtractionRun | None = None
    validation: ValidationReport | None = None
    report: RunReport | None = None
    written: list[Path] = field(default_factory=list)

    @property
    def worklist_required(self) -> list[WorklistEntry]:
        if self.worklist is None:
            raise RuntimeError(
                "Worklist has not been loaded. Ensure load_worklist() is called before accessing this property."
            )
        return self.worklist

    @property
    def run_required(self) -> ExtractionRun:
        if self.run is None:
            raise RuntimeError(
                "Extraction run has not been set. Ensure run_worklist() is called before accessing this property."
            )
        return self.run

    @property
    def validation_required(self) -> ValidationReport:
        if self.validation is None:
            raise RuntimeError(
                "Validation report has not been set. Ensure validate() is called before accessing this property."
            )
        return self.validation

    @property
    def report_required(self) -> RunReport:
        if self.report is None:
            raise RuntimeError(
                "Report has not been set. Ensure aggregate() is called before accessing this property."
            )
        return self.report
