"""File upload and parsing API."""
from fastapi import APIRouter, UploadFile, File, HTTPException

from plate_randomizer.services import FileService
from plate_randomizer.models import SampleSheet
from plate_randomizer.config import settings

router = APIRouter()
file_service = FileService()

ALLOWED_EXTENSIONS = ['.xlsx', '.xls', '.csv']


@router.post("/parse", response_model=SampleSheet)
async def parse_file(file: UploadFile = File(...)):
    """
    Parse uploaded sample sheet.
    
    Supports Excel (.xlsx, .xls) and CSV (.csv) formats.
    """
    # Validate file type
    if not file.filename:
        raise HTTPException(status_code=400, detail="Filename is required")
    
    if not any(file.filename.lower().endswith(ext) for ext in ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=400, 
            detail="Unsupported file format, upload an Excel or CSV file"
        )
    
    # Check file size
    content = await file.read()
    if len(content) > settings.max_file_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"File too large, upload a file under {settings.max_file_size_mb}MB"
        )
    
    # Parse file
    try:
        return file_service.parse_file(content, file.filename)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/validate")
async def validate_file(file: UploadFile = File(...)):
    """
    Validate a sample sheet without returning its samples.

    Checks the format and that a sample name column and at least one
    sample are present.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="Filename is required")
    
    if not any(file.filename.lower().endswith(ext) for ext in ALLOWED_EXTENSIONS):
        return {
            "valid": False,
            "filename": file.filename,
            "message": "Unsupported file format"
        }
    
    content = await file.read()
    try:
        sheet = file_service.parse_file(content, file.filename)
    except ValueError as e:
        return {"valid": False, "filename": file.filename, "message": str(e)}
    
    return {
        "valid": True,
        "filename": file.filename,
        "message": f"Found {len(sheet.samples)} samples",
        "sample_count": len(sheet.samples),
        "attributes": sheet.get_attributes()
    }
