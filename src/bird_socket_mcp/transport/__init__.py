"""Transport layer: control socket session, read loop, and error kinds."""
