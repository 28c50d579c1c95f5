"""
Inference backend integration for Reverie
"""

from .backend import InferenceBackend, OpenAIInferenceBackend
from .schema import decode_or_fail, describe_schema, strip_code_fences

__all__ = [
    "InferenceBackend",
    "OpenAIInferenceBackend",
    "decode_or_fail",
    "describe_schema",
    "strip_code_fences",
]
