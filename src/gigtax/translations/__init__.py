"""Translation catalogues shared by backend and front-end consumers."""
