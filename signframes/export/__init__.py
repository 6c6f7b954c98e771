from .archive import Archive, ArchiveBuilder, ZipEngine, save_archive

__all__ = ['Archive', 'ArchiveBuilder', 'ZipEngine', 'save_archive']
