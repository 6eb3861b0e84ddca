class PantryError(Exception):
    pass


class ValidationError(PantryError):
    """Required user input is missing. Raised before any external call."""


class GenerationUnavailable(PantryError):
    pass


class ExtractionUnavailable(PantryError):
    pass


class VisionUnavailable(PantryError):
    pass


class PlacesUnavailable(PantryError):
    pass


class GenerationFailed(PantryError):
    pass


class MalformedResponse(PantryError):
    def __init__(self, reason: str, raw: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


class ReceiptExtractionFailed(PantryError):
    def __init__(self, reason: str, raw: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw = raw
