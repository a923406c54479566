"""Event media: compression, ordered uploads and lifecycle management."""

from vibesync.media.compression import ImageCompressionError, ImageCompressor
from vibesync.media.lifecycle import MediaLifecycleManager
from vibesync.media.upload import MediaUploadOrchestrator

__all__ = [
    "ImageCompressionError",
    "ImageCompressor",
    "MediaLifecycleManager",
    "MediaUploadOrchestrator",
]
