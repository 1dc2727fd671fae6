"""Results writing, progress reporting and the done-file handshake for plugins."""