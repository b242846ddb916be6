"""Parsing of coach responses into typed actions."""

from .classifier import ClassifiedResponse, classify_payload, classify_payloads
from .segmenter import SegmentedResponse, apply_truncation_notice, segment_response

__all__ = [
    "ClassifiedResponse",
    "classify_payload",
    "classify_payloads",
    "SegmentedResponse",
    "apply_truncation_notice",
    "segment_response",
]
