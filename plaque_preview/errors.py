"""
Error handling for the Plaque Preview service.

Provides specific exception types for the different failure modes
of a render request and the context needed to report them.
"""

from typing import Dict, List, Optional, Any


class PlaquePreviewError(Exception):
    """Base exception for all Plaque Preview errors."""

    status_code = 500

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(PlaquePreviewError):
    """Raised when a plaque configuration is rejected before rendering."""
    status_code = 400


class RenderError(PlaquePreviewError):
    """Raised when a render fails part way through."""
    pass


class PreviewNotFoundError(PlaquePreviewError):
    """Raised when a preview id does not refer to a stored preview."""
    status_code = 404

    def __init__(self, preview_id: str):
        super().__init__(
            "Preview not found",
            details={'preview_id': preview_id}
        )


class UnsupportedPlaqueTypeError(ValidationError):
    """Raised when the requested plaque type has no layout."""

    def __init__(self, plaque_type: Any, supported: List[int]):
        super().__init__(
            f"Invalid plaque type: {plaque_type}. Must be between {min(supported)} and {max(supported)}",
            details={
                'plaque_type': plaque_type,
                'supported_types': supported
            },
            suggestions=[
                f"Use one of the supported card counts: {', '.join(str(s) for s in supported)}"
            ]
        )


class BackgroundAssetMissingError(RenderError):
    """Raised when the texture for a plaque style cannot be loaded."""

    def __init__(self, plaque_style: str, asset_path: str, reason: Optional[str] = None):
        super().__init__(
            f"Background asset not found: {plaque_style}",
            details={
                'plaque_style': plaque_style,
                'expected_path': asset_path,
                'reason': reason
            },
            suggestions=[
                f"Ensure the texture exists at: {asset_path}",
                "Check PLAQUE_STYLES in config/settings.yaml",
                "Use the 'blank' style to render without a texture"
            ]
        )


class EncodeError(RenderError):
    """Raised when the finished canvas cannot be encoded."""

    def __init__(self, output_format: str, reason: str):
        super().__init__(
            f"Failed to encode preview as {output_format}: {reason}",
            details={'output_format': output_format}
        )


class StorageError(RenderError):
    """Raised when an encoded preview cannot be written to the store."""

    def __init__(self, preview_id: str, reason: str):
        super().__init__(
            f"Failed to store preview {preview_id}: {reason}",
            details={'preview_id': preview_id},
            suggestions=["Check that PREVIEW_FOLDER exists and is writable"]
        )
