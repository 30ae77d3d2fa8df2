"""
Production environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, BackendConfig


@dataclass
class ProductionConfig(AppConfig):
    """Production environment configuration"""
    
    def __post_init__(self):
        self.backend = BackendConfig.from_secrets()
        
        # Production-specific overrides
        self.environment = "production"
        self.debug = False
        
        # Production logging - less verbose, focus on errors
        self.logging.level = "INFO"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/prod-app.log"
        
        # Production UI - clean and professional
        self.ui.app_title = "🏥 Hospital Management System"
        
        # One session per browser tab
        self.auth.session_backend = "streamlit"
        
        # Fail faster on a slow backend
        self.backend.request_timeout_seconds = min(self.backend.request_timeout_seconds, 15.0)


def get_production_config() -> ProductionConfig:
    """Get production-specific configuration"""
    return ProductionConfig()
