"""
Custom exception types for the gcodeclean pipeline.
Keep this focused and non-redundant; prefer built-ins where appropriate.
"""


class TokenError(ValueError):
    """Text that is not a letter/number word (caught by the tokenizer)."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Token Error: {message}")

    def __str__(self):
        return f"Token Error: {self.original_message}"


class ArcGeometryError(ValueError):
    """Arc request that no circle can satisfy (radius too small, zero chord, unknown start)."""

    def __init__(self, message: str):
        self.original_message = message
        super().__init__(f"Arc Geometry Error: {message}")

    def __str__(self):
        return f"Arc Geometry Error: {self.original_message}"
