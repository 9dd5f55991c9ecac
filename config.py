import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Config:
    # Server Configuration
    PORT = int(os.getenv("PORT", 8080))
    HOST = os.getenv("HOST", "0.0.0.0")

    # CORS Configuration
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", 30))
    GENERATE_RATE_LIMIT = os.getenv("GENERATE_RATE_LIMIT", "10/minute")

    # Document Output Settings
    PDF_OUTPUT_DIR = os.getenv("PDF_OUTPUT_DIR", "generated_documents")
    DEFAULT_TEMPLATE = os.getenv("DEFAULT_TEMPLATE", "classic")
    CURRENCY_LABEL = os.getenv("CURRENCY_LABEL", "Rs")

    @property
    def pdf_output_path(self) -> Path:
        return Path(self.PDF_OUTPUT_DIR)

    # Logging Configuration
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE", "document_engine.log")

    def validate(self):
        """Validate configuration"""
        if not self.PDF_OUTPUT_DIR.strip():
            raise ValueError("PDF_OUTPUT_DIR must not be empty.")

        import warnings
        if self.PORT <= 0:
            warnings.warn(f"PORT={self.PORT} is not a usable port number.")

        from themes import THEMES
        if self.DEFAULT_TEMPLATE not in THEMES:
            warnings.warn(
                f"DEFAULT_TEMPLATE '{self.DEFAULT_TEMPLATE}' is unknown; "
                f"expected one of {', '.join(sorted(THEMES))}."
            )

config = Config()
