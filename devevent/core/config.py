from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings with type-safe configuration management."""
    
    # Database Configuration
    DATABASE_URL: str = "postgresql+asyncpg://postgres:postgres@db:5432/devevent"
    
    # Redis Configuration
    REDIS_URL: str = "redis://redis:6379/0"
    CACHE_ENABLED: bool = True
    CACHE_TTL_SECONDS: int = 300
    
    # Image upload (the Cloudinary SDK falls back to CLOUDINARY_URL when these are unset)
    CLOUDINARY_CLOUD_NAME: Optional[str] = None
    CLOUDINARY_API_KEY: Optional[str] = None
    CLOUDINARY_API_SECRET: Optional[str] = None
    UPLOAD_FOLDER: str = "DevEvent"
    
    # Query limits
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    SIMILAR_EVENTS_LIMIT: int = 6
    
    # CORS Configuration
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:8000"
    
    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: Optional[str] = None
    
    class Config:
        env_file = ".env"
        case_sensitive = True
    
    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated ALLOWED_ORIGINS string to list."""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


# Create a single instance to be imported throughout the app
settings = Settings()
