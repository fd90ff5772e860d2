"""应用级认证"""
from .credentials import CredentialProvider, basic_authorization

__all__ = ["CredentialProvider", "basic_authorization"]
