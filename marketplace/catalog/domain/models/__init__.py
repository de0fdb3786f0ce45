from .listing import Listing


__all__ = ["Listing"]
