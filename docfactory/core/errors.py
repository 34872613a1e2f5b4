"""Error taxonomy for the documentary pipeline."""

from pathlib import Path
from typing import Optional, Union

# Failure kinds surfaced to callers
KIND_INPUT = "input"
KIND_INFRASTRUCTURE = "infrastructure"
KIND_INTERNAL = "internal"


class DocFactoryError(Exception):
    """Base class for all pipeline errors."""

    kind = KIND_INFRASTRUCTURE


class ContractUnsatisfied(DocFactoryError):
    """Narration duration negotiation ran out of attempts outside the acceptance window.

    Not fatal: the resolver records it and returns the last attempt. Raised only
    when the caller asks for strict behaviour.
    """

    kind = KIND_INPUT

    def __init__(self, attempts: int, last_duration: float, min_seconds: float, max_seconds: float):
        self.attempts = attempts
        self.last_duration = last_duration
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        super().__init__(
            f"Narration duration {last_duration:.2f}s outside [{min_seconds:.0f}s, {max_seconds:.0f}s] "
            f"after {attempts} attempt(s)"
        )


class ProbeFailure(DocFactoryError):
    """A media duration could not be measured."""

    kind = KIND_INPUT

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unable to determine duration for {self.path}: {reason}")


class AssetResolutionFailure(DocFactoryError):
    """A search or download produced nothing usable."""


class RenderEngineFailure(DocFactoryError):
    """The external rendering engine did not produce an output file."""

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        diagnostics: str = "",
        timed_out: bool = False,
    ):
        self.returncode = returncode
        self.diagnostics = diagnostics
        self.timed_out = timed_out
        detail = f"{message} (exit code {returncode})" if returncode is not None else message
        if diagnostics:
            detail = f"{detail}\n{diagnostics}"
        super().__init__(detail)


class InvariantViolation(DocFactoryError):
    """A timing invariant was broken; this is a programming error."""

    kind = KIND_INTERNAL


class ScriptGenerationError(DocFactoryError):
    """The script writer returned nothing usable."""


class SynthesisError(DocFactoryError):
    """The speech-synthesis provider failed."""


class PipelineStageError(DocFactoryError):
    """A pipeline stage failed; carries the stage name and failure kind."""

    def __init__(self, stage: str, cause: BaseException, kind: Optional[str] = None):
        self.stage = stage
        self.cause = cause
        self.kind = kind or classify_failure(cause)
        super().__init__(f"Stage '{stage}' failed ({self.kind}): {type(cause).__name__}: {cause}")


def classify_failure(error: BaseException) -> str:
    """Map an exception to 'input', 'infrastructure' or 'internal'."""
    if isinstance(error, DocFactoryError):
        return error.kind
    if isinstance(error, (ValueError, KeyError, FileNotFoundError)):
        return KIND_INPUT
    return KIND_INFRASTRUCTURE
