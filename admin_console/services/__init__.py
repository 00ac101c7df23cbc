from .auth_admin import AuthAdminClient, AuthAdminError, AuthResult

__all__ = ["AuthAdminClient", "AuthAdminError", "AuthResult"]
