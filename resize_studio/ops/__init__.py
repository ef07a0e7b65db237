"""Interactive edit helpers (crop clamping) invoked by the session."""
