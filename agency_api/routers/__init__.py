"""API routers, one per edge function family."""
