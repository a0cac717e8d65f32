"""Runtime services shared by the shortcut engine."""
