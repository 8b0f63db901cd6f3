# Mark services as a package and expose the client modules for tests to monkeypatch.

from . import generation as generation  # noqa: F401
from . import ocr as ocr  # noqa: F401

__all__ = [
    "generation",
    "ocr",
]
