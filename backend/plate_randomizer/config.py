"""Application configuration."""
from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings."""
    
    # App
    app_name: str = "Plate Randomizer"
    debug: bool = False
    
    # Randomization
    random_seed: Optional[int] = None
    default_rows: int = 8
    default_columns: int = 12
    max_samples: int = 10000
    
    # Quality scoring
    exact_run_threshold: int = 24
    
    # File Upload
    max_file_size_mb: int = 10
    
    # CORS
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    
    class Config:
        env_file = ".env"


settings = Settings()
