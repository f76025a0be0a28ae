"""Concrete adapters behind the interfaces in ``blog_archiver.interfaces``."""
