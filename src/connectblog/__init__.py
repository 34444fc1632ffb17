"""ConnectBlog API."""
