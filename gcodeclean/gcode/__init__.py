"""
G-code language support for gcodeclean

Main components:
- codes.py: recognised commands, modal groups and execution order
- parser.py: tokenization of raw text into Lines
- state.py: modal state carried from block to block
- utils.py: geometry helpers (arc centres, circle fitting, distances)
"""

from .parser import GcodeTokenizer, tokenize
from .state import ModalState

__all__ = ["GcodeTokenizer", "tokenize", "ModalState"]
