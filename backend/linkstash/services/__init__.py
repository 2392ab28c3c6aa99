"""Services package - storage, credentials and the article workflow."""
