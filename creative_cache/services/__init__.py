"""Services: asset cache, download sessions, object storage and archives."""
