"""
LLM module for handwritten log extraction.

This module provides the Gemini client, response parsing, and stub
response generation for development/testing.
"""

from .gemini_client import build_draft_batch, call_gemini, extract_log_records
from .response_parser import parse_rows, strip_code_fence
from .stub_generator import generate_stub_response

__all__ = [
    # Main LLM client
    "call_gemini",
    "extract_log_records",
    "build_draft_batch",
    # Response parsing
    "parse_rows",
    "strip_code_fence",
    # Stub generator
    "generate_stub_response",
]
