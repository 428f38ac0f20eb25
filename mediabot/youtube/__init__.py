from .importer import (
    PlaylistEntry,
    PlaylistImporter,
    extract_playlist_id,
    render_entries,
)

__all__ = ["PlaylistEntry", "PlaylistImporter", "extract_playlist_id", "render_entries"]
