from .identity_service import Identity, IdentityLookupService


__all__ = ["Identity", "IdentityLookupService"]
