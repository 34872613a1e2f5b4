"""Pipeline orchestrators for the Documentary Factory."""

from docfactory.pipelines.run_documentary import DocumentaryPipeline, format_beat_sheet, main

__all__ = ["DocumentaryPipeline", "format_beat_sheet", "main"]
