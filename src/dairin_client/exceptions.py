"""
Exception classes for the Dairin Python client
"""

from typing import Optional, Dict, Any


class DairinClientError(Exception):
    """Base exception for all Dairin client errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code
        self.details = details or {}


class ValidationError(DairinClientError):
    """Exception raised for request field validation failures"""
    pass


class ConfigurationError(DairinClientError):
    """Exception raised for missing or malformed client configuration"""
    pass


class ServerCommunicationError(DairinClientError):
    """Exception raised for server communication errors"""
    
    def __init__(self, message: str, error_code: str = "SERVER_ERROR", 
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
