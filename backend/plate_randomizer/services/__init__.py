"""Business services."""
from plate_randomizer.services.file_service import FileService
from plate_randomizer.services.layout_service import LayoutService

__all__ = ["FileService", "LayoutService"]
