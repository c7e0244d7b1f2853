"""RemotePad desktop app and command-line entrypoints."""
