"""
Login gate and upload-token helpers.
"""
from app.auth.gate import CredentialGate
from app.auth.tokens import create_upload_token, verify_upload_token

__all__ = ["CredentialGate", "create_upload_token", "verify_upload_token"]
