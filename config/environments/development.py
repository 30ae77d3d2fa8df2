"""
Development environment configuration overrides
"""

from dataclasses import dataclass
from config.app_config import AppConfig, BackendConfig


@dataclass
class DevelopmentConfig(AppConfig):
    """Development environment configuration"""
    
    def __post_init__(self):
        # Backend credentials still come from secrets/environment
        self.backend = BackendConfig.from_secrets()
        
        # Development-specific overrides
        self.environment = "development"
        self.debug = True
        
        # More verbose logging in development
        self.logging.level = "DEBUG"
        self.logging.enable_file_logging = True
        self.logging.log_file = "logs/dev-app.log"
        
        # Development UI changes
        self.ui.app_title = "🧪 Hospital Management System (DEV)"
        
        # Sessions survive a server restart while iterating locally
        self.auth.session_backend = "file"
        self.auth.session_file_path = ".sessions/dev_user_session.json"


def get_development_config() -> DevelopmentConfig:
    """Get development-specific configuration"""
    return DevelopmentConfig()
