from .email_store import EmailStore, is_valid_email

__all__ = ["EmailStore", "is_valid_email"]
