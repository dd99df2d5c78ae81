"""
BigPdfAssembler - Services Package

Planning, codec and export modules for merging and splitting PDFs.
"""

from bigpdfassembler.services.export_service import ExportOrchestrator, OutputArtifact
from bigpdfassembler.services.page_model import DocumentQueue, PageSet, SourceDocument

__all__ = ["DocumentQueue", "ExportOrchestrator", "OutputArtifact", "PageSet", "SourceDocument"]
