"""Medical report analysis service: OCR, text generation and lab value fallback."""
