"""Error Handler - provides user-friendly error messages for pipeline failures."""

from typing import Optional

from docfactory.core.errors import KIND_INPUT, KIND_INTERNAL, PipelineStageError


def format_error_message(
    operation: str,
    error: Exception,
    context: Optional[dict] = None,
    suggestion: Optional[str] = None,
) -> str:
    """
    Format a user-friendly error message.

    Args:
        operation: What operation was being performed (e.g., "Rendering video")
        error: The exception that occurred
        context: Additional context (e.g., {"project_id": "what-if-...", "stage": "render"})
        suggestion: Optional suggestion for how to fix the issue

    Returns:
        Formatted error message
    """
    error_type = type(error).__name__
    error_msg = str(error)

    # Build context string
    context_str = ""
    if context:
        context_parts = [f"{k}={v}" for k, v in context.items()]
        context_str = f" ({', '.join(context_parts)})"

    # Build message
    message = f"❌ {operation} failed{context_str}\n"
    message += f"   Error: {error_type}: {error_msg}"

    if suggestion:
        message += f"\n   💡 Suggestion: {suggestion}"

    return message


def get_stage_suggestion(error: Exception) -> Optional[str]:
    """
    Get a suggestion for how to recover from a stage failure.

    Args:
        error: The exception (usually a PipelineStageError)

    Returns:
        Suggestion string or None
    """
    if not isinstance(error, PipelineStageError):
        return None

    error_msg = str(error.cause).lower()

    if error.kind == KIND_INTERNAL:
        return "This is a bug in timeline allocation. Please report it with the log file."
    if error.kind == KIND_INPUT:
        if "unknown channel" in error_msg:
            return "Pick one of the configured channels (see --help)."
        if error.stage == "audio":
            return "The narration file could not be measured. Check the TTS provider output."
        return "Check the channel, topic and script inputs, then re-run."

    if error.stage == "script":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your OPENAI_API_KEY in .env file, or disable USE_LLM_FOR_SCRIPTS."
        return "Script generation failed. Wait a few minutes and try again."
    if error.stage == "audio":
        if "api key" in error_msg or "not configured" in error_msg:
            return "Check your TTS API key in .env file, or set TTS_PROVIDER=stub."
        if "rate limit" in error_msg or "429" in error_msg:
            return "Speech synthesis rate limit exceeded. Wait a few minutes and try again."
        return "Speech synthesis failed. Check the provider status and try again."
    if error.stage in ("assets", "download"):
        return "Stock media lookup failed. Check PEXELS_API_KEY and your network connection."
    if error.stage == "render":
        if "not found" in error_msg:
            return "Install ffmpeg or set FFMPEG_BINARY to its full path."
        return "Rendering failed. Inspect the engine output above; the partial file was removed."
    return None
