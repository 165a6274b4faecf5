"""Workflow orchestrators composing load, import and match."""

from __future__ import annotations

from .import_flow import ImportFlowResult, run_import_pipeline

__all__ = ["ImportFlowResult", "run_import_pipeline"]
